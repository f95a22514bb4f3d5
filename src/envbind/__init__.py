"""
envbind - bind environment variables into typed dataclass records

File: src/envbind/__init__.py

Purpose
- Package root and public API surface.

Example
    @dataclass
    class Config:
        host: str = ""
        port: int = field(default=0, metadata=tag(default="8080", env="app_port"))
        user: str = field(default="", metadata=tag(env="config_user", default="joseph", required=True))

    cfg = Config()
    parse("app", cfg)  # reads APP_HOST, APP_APP_PORT or APP_PORT, APP_CONFIG_USER or CONFIG_USER

Functional requirements
- No side effects at import time (no environment reads, no logging setup).
"""

from envbind.coercion import coerce_value
from envbind.environment import Lookup, environ_lookup, load_env_files, mapping_lookup
from envbind.errors import (
    EnvBindError,
    FieldCoercionError,
    InvalidConfigKindError,
    RequiredFieldMissingError,
)
from envbind.fields import FieldDescriptor, extract_fields, tag
from envbind.resolver import must_parse, parse, resolve
from envbind.types import (
    BitWidth,
    Duration,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Setter,
)

__version__ = "0.1.0"

__all__ = [
    "BitWidth",
    "Duration",
    "EnvBindError",
    "FieldCoercionError",
    "FieldDescriptor",
    "Float32",
    "Float64",
    "Int16",
    "Int32",
    "Int64",
    "Int8",
    "InvalidConfigKindError",
    "Lookup",
    "RequiredFieldMissingError",
    "Setter",
    "__version__",
    "coerce_value",
    "environ_lookup",
    "extract_fields",
    "load_env_files",
    "mapping_lookup",
    "must_parse",
    "parse",
    "resolve",
    "tag",
]
