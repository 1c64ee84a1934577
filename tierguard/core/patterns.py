"""
tierguard Security Patterns — Single Source of Truth
======================================================
All regex patterns used for zone classification and nuclear blocking.
These are data: the tables here are compiled once by the classifier and
the guard, and evaluation never touches the raw strings again.

Zone path patterns may contain the ``{HOME}`` placeholder, replaced with
the escaped home directory at compile time. ``{HOMES}`` matches the
current home plus any ``/home/<user>``, ``/Users/<user>`` or ``/root``.

SECURITY-CRITICAL: in code, not config. Nothing here can be changed at
runtime; an attacker with config write access cannot weaken the tables.

Import from: tierguard.core.patterns
"""

import re

from tierguard.core.types import Tier, Zone

HOME_TOKEN = '{HOME}'
HOMES_TOKEN = '{HOMES}'

# =============================================================================
# ZONE PATH PATTERNS
# =============================================================================

# SELF: the engine's own credentials, tokens, source and the host hook
# entrypoint. Checked first so self-protection wins over every other zone.
# The configured data directory is appended to this list at compile time.
SELF_PATH_PATTERNS = [
    # Host hook entrypoint (bootstrap protection)
    r'/\.claude/hooks(?:/|$)',
    r'user-prompt-submit\.sh$',
    # Default data directory
    r'^{HOMES}/\.tierguard(?:/|$)',
    # State files by name
    r'/passphrase\.hash$',
    r'/active\.token$',
    r'/bypass/failures\.json$',
    r'/bypass/last_activity$',
    r'/checksums\.sha256$',
    r'/zone-rate-limit\.state$',
    r'/inactivity\.timeout$',
    # Engine source
    r'/tierguard/core/',
    r'/tierguard/(?:cli|__main__|__init__)\.py$',
]

# SENSITIVE: credential and key stores.
SENSITIVE_PATH_PATTERNS = [
    r'^{HOMES}/\.ssh(?:/|$)',
    r'^{HOMES}/\.aws(?:/|$)',
    r'^{HOMES}/\.azure(?:/|$)',
    r'^{HOMES}/\.gcloud(?:/|$)',
    r'^{HOMES}/\.config/gcloud(?:/|$)',
    r'^{HOMES}/\.gnupg(?:/|$)',
    r'^{HOMES}/\.kube(?:/|$)',
    r'^{HOMES}/\.docker(?:/|$)',
    r'^{HOMES}/\.(?:netrc|git-credentials|pgpass|npmrc|pypirc)$',
]

# CONFIG: user configuration, including the agent's own settings.
CONFIG_PATH_PATTERNS = [
    r'^{HOMES}/\.claude(?:/|$)',
    r'^{HOMES}/\.config(?:/|$)',
    r'^{HOMES}/\.local/share(?:/|$)',
    r'^{HOMES}/\.(?:bashrc|bash_profile|zshrc|zprofile|profile|gitconfig)$',
]

# SYSTEM: operating system files.
SYSTEM_PATH_PATTERNS = [
    r'^/etc(?:/|$)',
    r'^/bin(?:/|$)',
    r'^/sbin(?:/|$)',
    r'^/lib(?:/|$)',
    r'^/lib64(?:/|$)',
    r'^/usr(?:/|$)',
    r'^/boot(?:/|$)',
    r'^/sys(?:/|$)',
    r'^/proc(?:/|$)',
    r'^/dev(?:/|$)',
    r'^/var/lib(?:/|$)',
    r'^/var/log(?:/|$)',
]

# DEVELOPMENT: the user's project work area.
# Checked after SYSTEM so /usr/Projects stays a system path.
DEVELOPMENT_PATH_PATTERNS = [
    r'^{HOMES}/[Pp]rojects(?:/|$)',
]

# Ordered (zone, tier, patterns). Order IS precedence.
ZONE_RULE_TABLE = (
    (Zone.SELF, Tier.SUPERADMIN, SELF_PATH_PATTERNS),
    (Zone.SENSITIVE, Tier.SUPERADMIN, SENSITIVE_PATH_PATTERNS),
    (Zone.CONFIG, Tier.SUPERADMIN, CONFIG_PATH_PATTERNS),
    (Zone.SYSTEM, Tier.SUPERADMIN, SYSTEM_PATH_PATTERNS),
    (Zone.DEVELOPMENT, Tier.BYPASS, DEVELOPMENT_PATH_PATTERNS),
)

ZONE_DESCRIPTIONS = {
    Zone.SELF: "tierguard security infrastructure",
    Zone.SENSITIVE: "Credential files (~/.ssh/*, ~/.aws/*)",
    Zone.CONFIG: "Configuration files (~/.config/*, ~/.claude/*)",
    Zone.SYSTEM: "System files (/etc/*, /usr/*, /bin/*)",
    Zone.DEVELOPMENT: "Development projects (~/Projects/*)",
    Zone.GENERAL: "General files",
}

# =============================================================================
# NUCLEAR PATTERNS: never unlockable, matched against operation text
# =============================================================================

# rm with a recursive flag in any flag token; -f is not required
_RM_FLAGS = r'(?:-\S+\s+)*'
_RM_R = r'\brm\s+' + _RM_FLAGS + r'(?:-[a-zA-Z]*[rR][a-zA-Z]*|--recursive)\s+' + _RM_FLAGS
_END = r'(?:\s|$|[;&|])'
_TOP_LEVEL = r'(?:bin|boot|dev|etc|home|lib|lib64|opt|proc|root|sbin|srv|sys|usr|var)'

# Network-capable operation text: a URL or a network client command
_NET = (r'(?:\b[a-zA-Z][a-zA-Z0-9+.-]*://\[?'
        r'|\b(?:curl|wget|nc|ncat|netcat|telnet|socat|aria2c|Invoke-WebRequest|Invoke-RestMethod)\b.*?)')

NUCLEAR_PATTERN_GROUPS = {
    'System destruction (rm -rf)': [
        _RM_R + r'/+' + _END,
        _RM_R + r'/+\*',
        _RM_R + r'--no-preserve-root',
        r'\brm\s+.*--no-preserve-root',
        _RM_R + r'/+' + _TOP_LEVEL + r'(?:/+\*?)?' + _END,
        _RM_R + r'(?:~|\$HOME|\$\{HOME\})/?' + _END,
    ],
    'Disk destruction (raw device write)': [
        r'\bdd\s.*\bof=/dev/(?:[shv]d[a-z]|xvd[a-z]|nvme\d|mmcblk\d|disk\d)',
        r'\bdd\s.*\bif=/dev/(?:zero|u?random).*\bof=/dev/',
        r'>\s*/dev/(?:[shv]d[a-z]|xvd[a-z]|nvme\d|mmcblk\d)',
        r'\bshred\s+.*?/dev/(?:[shv]d[a-z]|nvme\d)',
    ],
    'Filesystem destruction (format)': [
        r'\bmkfs(?:\.[a-zA-Z0-9]+)?\s.*?/dev/',
        r'\bmke2fs\s+(?:-\S+\s+)*/dev/',
        r'\bfdisk\s+/dev/(?:[shv]d[a-z]|nvme\d)',
        r'\bparted\s+(?:-\S+\s+)*/dev/',
        r'\bwipefs\s+(?:-\S+\s+)*/dev/',
    ],
    'Fork bomb': [
        r':\(\)\s*\{\s*:',
        r'\bfork\s*\(\)\s*while',
        r'(\w+)\(\)\s*\{\s*\1\s*\|\s*\1\s*&\s*\}',
    ],
    'System shutdown': [
        r'\bshutdown\s+(?:-[a-zA-Z]+\s+)*(?:now|\+?\d+)\b',
        r'\bshutdown\s+-[hHPr]\b',
        r'(?:^|[;&|]\s*|\bsudo\s+)(?:halt|poweroff)(?:\s|$)',
        r'\bhalt\s+-f\b',
        r'\binit\s+0\b',
        r'\bsystemctl\s+(?:halt|poweroff)\b',
    ],
    'Cloud metadata access (SSRF)': [
        _NET + r'169\.254\.169\.25[34]',
        _NET + r'metadata\.google\.internal',
        _NET + r'100\.100\.100\.200',
        _NET + r'fd00:ec2::254',
    ],
}

# =============================================================================
# SELF-PROTECTION: operation text that touches the engine itself
# =============================================================================

# Matched against operation TEXT (commands, URLs, globs). Any hit raises the
# required tier to SUPERADMIN regardless of the path's own zone.
SELF_PROTECTION_TEXT_PATTERNS = [
    r'\.tierguard(?:/|\b)',
    r'passphrase\.hash',
    r'active\.token',
    r'bypass/failures\.json',
    r'bypass/last_activity',
    r'checksums\.sha256',
    r'zone-rate-limit\.state',
    r'inactivity\.timeout',
    r'tierguard/core/',
    r'\.claude/hooks(?:/|\b)',
    r'TIERGUARD_HOME\s*=',
]


def expand_home_tokens(pattern: str, home: str) -> str:
    """Substitute the {HOME}/{HOMES} placeholders with an escaped home prefix."""
    escaped = re.escape(home.rstrip('/'))
    homes = r'(?:%s|/home/[^/]+|/Users/[^/]+|/root)' % escaped
    return pattern.replace(HOMES_TOKEN, homes).replace(HOME_TOKEN, escaped)


__all__ = [
    'SELF_PATH_PATTERNS', 'SENSITIVE_PATH_PATTERNS', 'CONFIG_PATH_PATTERNS',
    'SYSTEM_PATH_PATTERNS', 'DEVELOPMENT_PATH_PATTERNS',
    'ZONE_RULE_TABLE', 'ZONE_DESCRIPTIONS',
    'NUCLEAR_PATTERN_GROUPS', 'SELF_PROTECTION_TEXT_PATTERNS',
    'expand_home_tokens',
]
