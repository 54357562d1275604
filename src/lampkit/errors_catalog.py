"""Actionable error catalog for lampkit."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "not_root": {
        "what": "This installer must be run as root.",
        "next": "Re-run the command with `sudo` or from a root shell.",
    },
    "domain_required": {
        "what": "A domain name is required for {ssl_type} setup.",
        "next": "Point a DNS record at this server and enter the domain when prompted.",
    },
    "invalid_port": {
        "what": "Invalid port value: {value}",
        "next": "Use an integer between 1 and 65535.",
    },
    "certificate_file_missing": {
        "what": "{label} file not found at {path}",
        "next": "Check the path and copy the file to this server before retrying.",
    },
    "certificate_file_unreadable": {
        "what": "{label} file is not readable at {path}",
        "next": "Fix the file permissions so the installer can read it.",
    },
    "certificate_key_mismatch": {
        "what": "Certificate and key do not match.",
        "next": "Provide the private key that was used to create the certificate request.",
    },
    "letsencrypt_failed": {
        "what": "Let's Encrypt certificate generation failed for {domain}.",
        "next": "Check that {domain} points to this server and that port 80 is reachable.",
    },
    "mysql_root_password_invalid": {
        "what": "Invalid MySQL root password.",
        "next": "Run the installer again and enter the current root password.",
    },
    "mysql_not_found": {
        "what": "No working MySQL installation was found.",
        "next": "Install MySQL, XAMPP, WAMP or Laragon, or pass `--mysql-path`.",
    },
    "invalid_user_host": {
        "what": "Invalid account '{value}'. Expected the form user@host.",
        "next": "Enter the account as `name@host`, for example `bob@localhost`.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
