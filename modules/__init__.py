"""ERGI Processing Modules

This package contains the processing modules of the ERGI view utilities.
Each module implements the ModuleProcessor interface and provides the business
logic for one derived product of the glacier inventory.
"""
