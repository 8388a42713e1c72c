from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Literal, Tuple
import paramiko
from pathlib import Path


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = 22
    auth_method: Literal["password", "key"] = "password"
    password: Optional[str] = None
    key_path: Optional[str] = None
    timeout: float = 10


class RemoteClient:
    """
    Thin wrapper around paramiko SSHClient:
    - keeps host / user / port explicitly
    - password and key login
    - loads Ed25519 / RSA / ECDSA private keys
    - exec / sftp helpers
    - usable as a context manager
    """
    def __init__(
        self,
        host: str,
        user: str,
        port: int = 22,
        auth_method: Literal["password", "key"] = "password",
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        timeout: float = 10,
    ) -> None:
        self.config = ClientConfig(
            host=host,
            user=user,
            port=port,
            auth_method=auth_method,
            password=password,
            key_path=key_path,
            timeout=timeout,
        )

        self.client = paramiko.SSHClient()
        self.client.load_system_host_keys()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        self._sftp: Optional[paramiko.SFTPClient] = None

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        self._connect()

    def _connect(self) -> None:
        cfg = self.config

        if cfg.auth_method == "password":
            self.client.connect(
                hostname=cfg.host,
                port=cfg.port,
                username=cfg.user,
                password=cfg.password,
                timeout=cfg.timeout,
                allow_agent=False,
                look_for_keys=False,
            )

        elif cfg.auth_method == "key":
            key = self._load_private_key(cfg.key_path)
            self.client.connect(
                hostname=cfg.host,
                port=cfg.port,
                username=cfg.user,
                pkey=key,
                timeout=cfg.timeout,
            )

        else:
            raise ValueError(f"Unsupported auth method: {cfg.auth_method}")

    # --------------------
    # Load private key
    # --------------------
    def _load_private_key(self, path: Optional[str]) -> paramiko.PKey:
        """Try Ed25519, then RSA, then ECDSA"""
        if not path:
            raise RuntimeError("Key authentication requires a key path")
        p = Path(path).expanduser()

        for key_cls in (paramiko.Ed25519Key, paramiko.RSAKey, paramiko.ECDSAKey):
            try:
                return key_cls.from_private_key_file(str(p))
            except (paramiko.SSHException, ValueError):
                continue
            except OSError as e:
                raise RuntimeError(f"Failed to read private key at {p}") from e
        raise RuntimeError(f"Failed to load private key at {p}")

    # --------------------
    # Helpers
    # --------------------
    def exec_with_code(
        self, cmd: str, timeout: Optional[float] = None
    ) -> Tuple[str, str, int]:
        """
        Run a command, return (stdout, stderr, exit_code).

        With a timeout, reads on the channel raise socket.timeout
        (a TimeoutError) once it elapses.
        """
        stdin, stdout, stderr = self.client.exec_command(cmd, timeout=timeout)
        stdin.close()
        out = stdout.read().decode('utf-8', errors='replace')
        err = stderr.read().decode('utf-8', errors='replace')
        exit_code = stdout.channel.recv_exit_status()
        return out, err, exit_code

    def open_sftp(self) -> paramiko.SFTPClient:
        """Return an SFTP client, reusing the open one"""
        if self._sftp is None or self._sftp.get_channel() is None:
            self._sftp = self.client.open_sftp()
        return self._sftp

    def close(self) -> None:
        if self._sftp:
            try:
                self._sftp.close()
            except (OSError, paramiko.SSHException):
                pass
            self._sftp = None
        self.client.close()

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
