"""
Configuration adapters
"""
from .loader import ConfigLoader
from .deploy_parser import parse_hooks, parse_target, resolve_local_dir

__all__ = ["ConfigLoader", "parse_hooks", "parse_target", "resolve_local_dir"]
