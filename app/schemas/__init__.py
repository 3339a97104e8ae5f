# ruff: noqa: F403, F401
"""Schemas package initialization."""

from .base import *
from .chat import *
from .journal import *
from .memory import *
from .message import *
from .user import *
