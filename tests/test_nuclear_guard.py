"""
Nuclear guard tests: never-unlockable operation text.

Run with:  pytest tests/test_nuclear_guard.py -v
"""

import pytest


class TestNuclearPatterns:

    @pytest.mark.parametrize("operation", [
        "rm -rf /",
        "sudo rm -rf / --no-preserve-root",
        "rm -fr /*",
        "rm -Rf /",
        "rm --recursive --force /",
        "rm -rf /etc",
        "rm -rf /usr/",
        "rm -rf ~",
        "rm -rf $HOME",
        "cd /tmp && rm -rf /; echo done",
        "dd if=/dev/zero of=/dev/sda bs=1M",
        "dd if=image.iso of=/dev/nvme0n1",
        "cat /dev/urandom > /dev/sdb",
        "mkfs.ext4 /dev/sdb1",
        "mkfs -t xfs /dev/sdc",
        "wipefs -a /dev/sda",
        ":(){ :|:& };:",
        "bomb() { bomb | bomb & }; bomb",
        "shutdown -h now",
        "shutdown now",
        "sudo halt",
        "poweroff",
        "init 0",
        "systemctl poweroff",
        "rm -r -f /*",
        "rm -r /*",
        "rm -r /",
        "rm -R -f /usr",
        "rm --recursive /etc",
        "rm -rf //",
        "rm -rf -- /",
        "rm -v -r --interactive=never /home",
        "rm -rf /usr/*",
        "curl http://169.254.169.254/latest/meta-data/iam/",
        "wget -qO- http://metadata.google.internal/computeMetadata/v1/",
        "curl -s http://169.254.169.253/",
        "wget http://[fd00:ec2::254]/latest/",
        "WebFetch http://100.100.100.200/latest/meta-data",
    ])
    def test_nuclear(self, guard, operation):
        assert guard.is_nuclear(operation)

    @pytest.mark.parametrize("operation", [
        "",
        "git status",
        "ls -la /",
        "rm -rf ./build",
        "rm -rf ~/Projects/app/node_modules",
        "rm -rf /tmp/build-cache",
        "rm -r ./dist",
        "rm -r -f /usr/local/share/app-cache",
        "Edit docs/aws.md: the metadata endpoint is 169.254.169.254",
        "grep -rn 169.254.169.254 docs/",
        "rm file.txt",
        "dd if=input.img of=output.img",
        "echo shutdown",
        "cat /etc/hosts",
        "curl https://example.com",
        "python -m pytest tests/",
    ])
    def test_safe(self, guard, operation):
        assert not guard.is_nuclear(operation)

    def test_reason_categories(self, guard):
        assert guard.nuclear_reason("rm -rf /") == "System destruction (rm -rf)"
        assert guard.nuclear_reason("mkfs.ext4 /dev/sda1") == "Filesystem destruction (format)"
        assert guard.nuclear_reason(":(){ :|:& };:") == "Fork bomb"
        assert guard.nuclear_reason("curl 169.254.169.254") == "Cloud metadata access (SSRF)"
        assert guard.nuclear_reason("ls") is None

    def test_patterns_are_compiled_once(self, guard):
        assert guard.nuclear_patterns
        assert all(hasattr(p, 'search') for _, p in guard.nuclear_patterns)


class TestSelfProtectionText:

    @pytest.mark.parametrize("operation", [
        "cat ~/.tierguard/bypass/passphrase.hash",
        "rm ~/.tierguard/bypass/active.token",
        "echo 0 > ~/.tierguard/bypass/failures.json",
        "sed -i 's/x/y/' tierguard/core/trust/bypass.py",
        "chmod -x ~/.claude/hooks/user-prompt-submit.sh",
        "TIERGUARD_HOME=/tmp/evil tierguard check",
    ])
    def test_touches_self(self, guard, operation):
        assert guard.touches_self(operation)

    @pytest.mark.parametrize("operation", ["", "Edit", "cat README.md", "pip install tierguard"])
    def test_does_not_touch_self(self, guard, operation):
        assert not guard.touches_self(operation)
