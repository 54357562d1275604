"""Domain errors for lampkit."""


class ProvisionError(RuntimeError):
    """Raised when provisioning or administration cannot continue safely."""


class CertificateIssueError(ProvisionError):
    """Raised when a certificate authority refuses to issue a certificate."""
