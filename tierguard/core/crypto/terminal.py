#!/usr/bin/env python3
"""
tierguard Core Crypto — Terminal Gate
=======================================
Credential entry is only reachable from a real interactive terminal:
- stdin must be a TTY
- stdin must not be a pipe
- /dev/tty must be readable and openable

The passphrase is read byte by byte from /dev/tty (never from stdin, so a
piped or redirected stream cannot supply it). Each keystroke echoes ``*``;
backspace erases. Input is bounded by a timeout.

Import from: tierguard.core.crypto.terminal
"""

import codecs
import logging
import os
import select
import stat
import sys
import termios
import time

from tierguard.core.types import PromptTimeoutError, TTYRequiredError

logger = logging.getLogger("tierguard.core.crypto.terminal")

TTY_DEVICE = '/dev/tty'

_ENTER = ('\r', '\n')
_BACKSPACE = ('\x7f', '\b')
_INTERRUPT = '\x03'
_EOF = '\x04'


def has_interactive_tty() -> bool:
    """True only when a human could be typing at a terminal."""
    try:
        fd = sys.stdin.fileno()
    except (AttributeError, ValueError, OSError):
        logger.debug("TTY check failed: stdin has no file descriptor")
        return False

    if not os.isatty(fd):
        logger.debug("TTY check failed: stdin is not a terminal")
        return False

    try:
        if stat.S_ISFIFO(os.fstat(fd).st_mode):
            logger.debug("TTY check failed: stdin is a pipe")
            return False
    except OSError:
        return False

    if not os.access(TTY_DEVICE, os.R_OK):
        logger.debug("TTY check failed: %s is not readable", TTY_DEVICE)
        return False
    try:
        tty_fd = os.open(TTY_DEVICE, os.O_RDWR | os.O_NOCTTY)
    except OSError:
        logger.debug("TTY check failed: cannot open %s", TTY_DEVICE)
        return False
    os.close(tty_fd)
    return True


def require_tty(action: str = "credential entry") -> None:
    if not has_interactive_tty():
        raise TTYRequiredError(
            f"{action} requires an interactive terminal. "
            "Run this command yourself, not through the agent or a pipe."
        )


def read_passphrase(prompt: str = "Passphrase: ", timeout: float = 120) -> str:
    """Read a masked passphrase from /dev/tty.

    Raises:
        TTYRequiredError: no controlling terminal could be opened.
        PromptTimeoutError: nothing complete was entered within timeout.
        KeyboardInterrupt: the operator pressed Ctrl-C.
    """
    try:
        fd = os.open(TTY_DEVICE, os.O_RDWR | os.O_NOCTTY)
    except OSError as e:
        raise TTYRequiredError(f"Cannot open {TTY_DEVICE}: {e}") from e

    try:
        old_settings = termios.tcgetattr(fd)
    except termios.error as e:
        os.close(fd)
        raise TTYRequiredError(f"{TTY_DEVICE} is not a terminal: {e}") from e

    new_settings = termios.tcgetattr(fd)
    # lflags: no echo, no canonical buffering; keep ISIG so Ctrl-C still works
    new_settings[3] &= ~(termios.ECHO | termios.ICANON)
    new_settings[6][termios.VMIN] = 1
    new_settings[6][termios.VTIME] = 0

    decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
    chars = []
    deadline = time.monotonic() + timeout

    try:
        termios.tcsetattr(fd, termios.TCSADRAIN, new_settings)
        os.write(fd, prompt.encode('utf-8'))
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise PromptTimeoutError(f"No passphrase entered within {int(timeout)}s")
            readable, _, _ = select.select([fd], [], [], remaining)
            if not readable:
                continue

            data = os.read(fd, 1)
            if not data:
                break
            ch = decoder.decode(data)
            if not ch:
                continue  # partial multibyte sequence

            if ch in _ENTER or ch == _EOF:
                break
            if ch == _INTERRUPT:
                raise KeyboardInterrupt
            if ch in _BACKSPACE:
                if chars:
                    chars.pop()
                    os.write(fd, b'\b \b')
                continue
            if ch < ' ':
                continue
            chars.append(ch)
            os.write(fd, b'*')
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        try:
            os.write(fd, b'\n')
        finally:
            os.close(fd)

    return ''.join(chars)


__all__ = ['TTY_DEVICE', 'has_interactive_tty', 'require_tty', 'read_passphrase']
