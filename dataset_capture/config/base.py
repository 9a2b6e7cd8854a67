# config/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
import os
import json
import logging
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class BaseConfig(ABC):
    """Base configuration; env helpers fall back to the default on malformed values"""

    @classmethod
    @abstractmethod
    def from_env(cls) -> 'BaseConfig':
        """Create configuration from environment variables"""
        pass

    @staticmethod
    def _parse_env(key: str, default: Any, parse: Callable[[str], Any]) -> Any:
        env_value = os.getenv(key, '').strip()
        if not env_value:
            return default
        try:
            return parse(env_value)
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring invalid {key}={env_value!r}, using {default!r}: {e}")
            return default

    @staticmethod
    def get_env_bool(key: str, default: bool = False) -> bool:
        return BaseConfig._parse_env(key, default, lambda v: v.lower() in ('true', '1', 'yes', 'on'))

    @staticmethod
    def get_env_int(key: str, default: int) -> int:
        return BaseConfig._parse_env(key, default, int)

    @staticmethod
    def get_env_float(key: str, default: float) -> float:
        return BaseConfig._parse_env(key, default, float)

    @staticmethod
    def get_env_json(key: str, default: Any) -> Any:
        """JSON object or list, e.g. the capture phase table"""
        return BaseConfig._parse_env(key, default, json.loads)

    @staticmethod
    def get_env_size(key: str, default: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        """``WIDTH,HEIGHT`` pair such as ``1920,1080``"""
        def parse(value: str) -> Tuple[int, int]:
            parts = [part.strip() for part in value.split(',')]
            if len(parts) != 2:
                raise ValueError("expected WIDTH,HEIGHT")
            width, height = int(parts[0]), int(parts[1])
            if width <= 0 or height <= 0:
                raise ValueError("dimensions must be positive")
            return width, height

        return BaseConfig._parse_env(key, default, parse)
