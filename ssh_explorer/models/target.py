"""Connection target data models."""

from dataclasses import dataclass, field

from ssh_explorer.utils.validation import validate_host


@dataclass(frozen=True)
class ConnectionTarget:
    """Remote SSH endpoint.

    Equality and hashing only consider host, port and username, so two
    targets with different credentials still share one pooled session.
    """

    host: str
    username: str
    port: int = 22
    password: str | None = field(default=None, repr=False, compare=False)
    key_file: str | None = field(default=None, compare=False)

    @property
    def key(self) -> str:
        """Pool key in ``user@host:port`` form."""
        return f"{self.username}@{self.host}:{self.port}"

    @classmethod
    def parse(
        cls,
        connection_string: str,
        password: str | None = None,
        key_file: str | None = None,
        default_user: str = "root",
    ) -> "ConnectionTarget":
        """Parse a ``user@host[:port]`` connection string.

        Args:
            connection_string: Connection string, user part optional
            password: Password for password authentication
            key_file: Private key path for public key authentication
            default_user: Username used when the string has none

        Returns:
            ConnectionTarget for the endpoint.

        Raises:
            ValueError: If the string is empty or the port is invalid.
        """
        value = connection_string.strip()
        if not value:
            raise ValueError("Connection string cannot be empty")

        username = default_user
        if "@" in value:
            username, value = value.rsplit("@", 1)
            if not username:
                raise ValueError(f"Empty username in '{connection_string}'")

        port = 22
        # IPv6 literals come bracketed: [::1]:2222
        if value.startswith("["):
            host, _, rest = value[1:].partition("]")
            if rest.startswith(":"):
                port = _parse_port(rest[1:], connection_string)
        elif value.count(":") == 1:
            host, port_str = value.split(":", 1)
            port = _parse_port(port_str, connection_string)
        else:
            host = value

        return cls(
            host=validate_host(host),
            username=username,
            port=port,
            password=password,
            key_file=key_file,
        )


def _parse_port(value: str, connection_string: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ValueError(f"Invalid port in '{connection_string}'") from None
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range in '{connection_string}'")
    return port
