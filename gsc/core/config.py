"""
Client configuration model
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any

from .constants import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT, DEFAULT_PARALLEL
from .exceptions import ConfigError

OVERWRITE_CHOICES = ("force", "interactive", "never", "prompt")


@dataclass
class ClientConfig:
    """Settings shared by every command"""
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT
    parallel: int = DEFAULT_PARALLEL
    overwrite: str = "prompt"
    dotfile: Optional[str] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "endpoint": self.endpoint,
            "timeout": self.timeout,
            "parallel": self.parallel,
            "overwrite": self.overwrite,
            "dotfile": self.dotfile,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """
        Create from dictionary, validating values.
        
        Unknown keys are ignored.
        
        Raises:
            ConfigError: If a value has the wrong type or range
        """
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        config = cls(**valid_fields)
        
        if not isinstance(config.endpoint, str) or not config.endpoint:
            raise ConfigError("endpoint must be a non-empty string")
        config.endpoint = config.endpoint.rstrip("/")
        
        try:
            config.timeout = float(config.timeout)
            config.parallel = int(config.parallel)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid number in configuration: {e}") from e
        
        if config.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if config.parallel < 1:
            raise ConfigError("parallel must be at least 1")
        if config.overwrite not in OVERWRITE_CHOICES:
            raise ConfigError(
                f"overwrite must be one of {', '.join(OVERWRITE_CHOICES)}, got ‘{config.overwrite}’"
            )
        
        return config
