"""Shared constants for lampkit."""

DIR_MODE = 0o755
FILE_MODE = 0o644
PRIVATE_FILE_MODE = 0o600

SSL_SELF_SIGNED = "self-signed"
SSL_CLOUDFLARE = "cloudflare"
SSL_LETSENCRYPT = "letsencrypt"
SSL_CUSTOM = "custom"

DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443
DEFAULT_SSH_PORT = 22

WEB_USER = "www-data"
WEB_GROUP = "www-data"

WORDPRESS_ARCHIVE_URL = "https://wordpress.org/latest.tar.gz"
WORDPRESS_SALT_URL = "https://api.wordpress.org/secret-key/1.1/salt/"
WORDPRESS_STOP_EDITING_MARKER = "That's all, stop editing"

PHP_PACKAGES = [
    "php",
    "php-bz2",
    "php-mysqli",
    "php-curl",
    "php-gd",
    "php-intl",
    "php-common",
    "php-mbstring",
    "php-xml",
]
UTILITY_PACKAGES = ["dnsutils", "curl", "wget"]

CERTBOT_RENEW_SCHEDULE = (
    "0 3 * * * root certbot renew --quiet --post-hook 'systemctl reload apache2'"
)

CLOUDFLARE_IPV4_RANGES = (
    "173.245.48.0/20",
    "103.21.244.0/22",
    "103.22.200.0/22",
    "103.31.4.0/22",
    "141.101.64.0/18",
    "108.162.192.0/18",
    "190.93.240.0/20",
    "188.114.96.0/20",
    "197.234.240.0/22",
    "198.41.128.0/17",
    "162.158.0.0/15",
    "172.64.0.0/13",
    "131.0.72.0/22",
)
CLOUDFLARE_IPV6_RANGES = (
    "2400:cb00::/32",
    "2606:4700::/32",
    "2803:f800::/32",
    "2405:b500::/32",
    "2405:8100::/32",
    "2a06:98c0::/29",
    "2c0f:f248::/32",
)

MYSQL_MAX_LOGIN_ATTEMPTS = 3
MYSQL_MAX_RETRIES = 3
MYSQL_RETRY_DELAY_SECONDS = 2.0
MYSQL_RESET_WAIT_SECONDS = 10.0
MYSQL_SERVICE_PATTERN = r"mysql|mariadb"

MYSQL_SEARCH_PATTERNS = (
    r"C:\Program Files\MySQL\MySQL Server *\bin",
    r"C:\xampp\mysql\bin",
    r"C:\wamp64\bin\mysql\mysql*\bin",
    r"C:\wamp\bin\mysql\mysql*\bin",
    r"C:\laragon\bin\mysql\mysql*\bin",
)
