"""ERGI Module Processor Interface

This module defines the abstract base class and data models that every view
processing module implements, so the command line entry points can trigger
and report on any of them in the same way.
"""

from abc import ABC, abstractmethod
from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any, Literal
from datetime import datetime


class ProcessingResult(BaseModel):
    """Outcome of one view refresh as reported to the command line.

    ``records_processed`` counts canonical rows built. On failure
    ``error_context`` carries the error type and the identifiers (entity id
    and region family, or source name) needed to locate the offending input.
    """
    
    success: bool = Field(..., description="Whether the processing completed successfully")
    records_processed: int = Field(ge=0, description="Canonical rows built")
    errors: List[str] = Field(default_factory=list, description="List of error messages if any")
    error_context: Dict[str, Any] = Field(default_factory=dict, description="Identifiers needed to diagnose a failure")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional processing metadata")
    execution_time: float = Field(ge=0.0, description="Processing execution time in seconds")


class ModuleStatus(BaseModel):
    """Snapshot of a view module for the ``status`` command.

    ``status`` mirrors the refresh controller state, or ``error`` when the
    last refresh failed; ``details`` holds the published snapshot version and
    a summary of the last refresh.
    """
    
    module_name: str = Field(..., description="Name of the processing module")
    is_configured: bool = Field(..., description="Whether the module is properly configured")
    last_run: Optional[datetime] = Field(None, description="Timestamp of the last successful processing run")
    status: Literal['stale', 'refreshing', 'published', 'error'] = Field(
        ..., description="Current state of the module's published output"
    )
    health_check: bool = Field(..., description="Result of the most recent health check")
    details: Dict[str, Any] = Field(default_factory=dict, description="Module specific status details")


class ModuleProcessor(ABC):
    """Abstract base class for all ERGI processing modules.
    
    Concrete modules inherit from this class and implement every abstract
    method according to their processing requirements.
    """
    
    @abstractmethod
    def __init__(self, config_loader):
        """Initialize module with shared configuration.
        
        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
        """
        pass
    
    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate module-specific configuration.
        
        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        pass
    
    @abstractmethod
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Execute module processing logic.
        
        Implementations must respect ``dry_run`` by computing everything
        without publishing results.
        
        Args:
            dry_run: If True, perform all processing logic without making actual changes
            
        Returns:
            ProcessingResult: Standardized result object with success status, metrics, and errors
        """
        pass
    
    @abstractmethod
    def get_status(self) -> ModuleStatus:
        """Get current module processing status.
        
        Returns:
            ModuleStatus: Current module status and health information
        """
        pass
