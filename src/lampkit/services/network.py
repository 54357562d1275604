"""Host address discovery and DNS checks."""

import socket
from typing import Callable, Optional


class NetworkService:
    """Looks up the primary address of this host and resolves domains."""

    def __init__(self, logger, console, run_cmd: Callable, resolver=socket.gethostbyname):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.resolver = resolver
        self._primary_ip: Optional[str] = None

    def primary_ip(self) -> str:
        if self._primary_ip:
            return self._primary_ip

        result = self.run_cmd(["hostname", "-I"], check=False, capture_output=True)
        addresses = (result.stdout or "").split() if result.returncode == 0 else []
        if addresses:
            self._primary_ip = addresses[0]
        else:
            self._primary_ip = self._route_address()
        return self._primary_ip

    def _route_address(self) -> str:
        probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            probe.connect(("192.0.2.1", 80))
            return probe.getsockname()[0]
        except OSError:
            return "127.0.0.1"
        finally:
            probe.close()

    def resolve(self, domain: str) -> Optional[str]:
        try:
            return self.resolver(domain)
        except (socket.gaierror, socket.herror, UnicodeError) as exc:
            self.logger.debug("DNS lookup for %s failed: %s", domain, exc)
            return None

    def verify_domain_points_here(self, domain: str) -> bool:
        """Warns when ``domain`` does not resolve to this host. Never raises."""
        server_ip = self.primary_ip()
        domain_ip = self.resolve(domain)

        if not domain_ip:
            self.logger.warning("Could not resolve domain %s", domain)
            self.console.print(
                f"[blue]Make sure the domain has an A record pointing to this server's IP ({server_ip}).[/blue]"
            )
            self.console.print("[blue]Continuing, but certificate generation may fail.[/blue]")
            return False

        if domain_ip != server_ip:
            self.logger.warning(
                "Domain %s points to %s, not to this server (%s)", domain, domain_ip, server_ip
            )
            self.console.print("[blue]Make sure the domain has an A record pointing to this server's IP.[/blue]")
            self.console.print("[blue]Continuing, but certificate generation may fail.[/blue]")
            return False

        self.console.print(f"[green]Domain {domain} correctly points to this server.[/green]")
        return True
