"""
Remote session access
"""
from .channel import SSHRemoteChannel

__all__ = ["SSHRemoteChannel"]
