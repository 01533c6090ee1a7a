"""
Centralized environment configuration

Values come from the environment (or a .env file) and fall back to defaults
suitable for local development.
"""

import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _get_optional(value: Optional[str], default: str) -> str:
    return value if value else default


def _get_list(value: Optional[str]) -> List[str]:
    return [item for item in (value or '').split(os.pathsep) if item]


# sqlglot dialect used to parse SQL text
SQL_DIALECT = _get_optional(os.getenv('SQL_DDLOG_DIALECT'), 'postgres')

# External ddlog compiler
DDLOG_BINARY = _get_optional(os.getenv('DDLOG_BINARY'), 'ddlog')
DDLOG_LIB_DIRS = _get_list(os.getenv('DDLOG_LIB_DIRS'))
DDLOG_ACTION = _get_optional(os.getenv('DDLOG_ACTION'), 'validate')
