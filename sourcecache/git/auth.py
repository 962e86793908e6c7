"""
Authentication and transport settings for git network operations.

Settings are handed to git through the environment (GIT_CONFIG_COUNT /
GIT_CONFIG_KEY_<n> / GIT_CONFIG_VALUE_<n>), so they apply to a single
invocation and are never written to the cached working copy's .git/config.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

USERNAME_ENV = "SOURCECACHE_GIT_USERNAME"
PASSWORD_ENV = "SOURCECACHE_GIT_PASSWORD"

# Answers every credential request with the username/password from the environment.
_INLINE_HELPER = (
    '!f() { test "$1" = get || return 0; '
    f"printf 'username=%s\\npassword=%s\\n' \"${USERNAME_ENV}\" \"${PASSWORD_ENV}\"; "
    "}; f"
)

# Identity used when pulling needs a merge commit in the cache.
MERGE_IDENTITY = ("sourcecache", "sourcecache@localhost")


class CredentialStrategy(ABC):
    """How authentication challenges from the git transport are answered."""

    @abstractmethod
    def git_config(self) -> List[Tuple[str, str]]:
        """Configuration entries passed to git for this strategy."""

    def environment(self) -> Dict[str, str]:
        """Extra environment variables for the git process."""
        return {}


class ExplicitCredentials(CredentialStrategy):
    """Answer every challenge with a fixed username and password."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def git_config(self) -> List[Tuple[str, str]]:
        # the empty value resets the helper list configured on the host
        return [("credential.helper", ""), ("credential.helper", _INLINE_HELPER)]

    def environment(self) -> Dict[str, str]:
        return {
            USERNAME_ENV: self.username,
            PASSWORD_ENV: self.password,
            "GIT_TERMINAL_PROMPT": "0",
        }

    def __repr__(self) -> str:
        return f"ExplicitCredentials(username={self.username!r}, password='***')"


class CredentialHelperChain(CredentialStrategy):
    """Forward challenges to the credential helpers configured on the host.

    git walks through the configured helpers until one of them provides
    credentials; interactive prompting is disabled so running out of
    candidates fails instead of blocking.
    """

    def git_config(self) -> List[Tuple[str, str]]:
        return []

    def environment(self) -> Dict[str, str]:
        return {"GIT_TERMINAL_PROMPT": "0"}

    def __repr__(self) -> str:
        return "CredentialHelperChain()"


def credential_strategy(
    credentials: Optional[Tuple[str, str]] = None,
) -> CredentialStrategy:
    """Select the authentication strategy for one retrieval."""
    if credentials is not None:
        username, password = credentials
        return ExplicitCredentials(username, password)
    return CredentialHelperChain()


@dataclass(frozen=True)
class TransportOptions:
    """Per-retrieval transport configuration.

    Attributes:
        credentials: strategy answering authentication challenges
        verify_tls: verify server certificates (disable for self-signed setups)
        use_proxy: honor proxy settings detected from the environment
    """

    credentials: CredentialStrategy = field(default_factory=CredentialHelperChain)
    verify_tls: bool = True
    use_proxy: bool = True

    def git_config(self) -> List[Tuple[str, str]]:
        entries = list(self.credentials.git_config())
        if not self.verify_tls:
            entries.append(("http.sslVerify", "false"))
        if not self.use_proxy:
            # an empty proxy explicitly disables proxying in curl
            entries.append(("http.proxy", ""))
        entries.append(("user.name", MERGE_IDENTITY[0]))
        entries.append(("user.email", MERGE_IDENTITY[1]))
        return entries

    def environment(self) -> Dict[str, str]:
        env = dict(self.credentials.environment())
        if not self.use_proxy:
            env["no_proxy"] = "*"
            env["NO_PROXY"] = "*"

        entries = self.git_config()
        env["GIT_CONFIG_COUNT"] = str(len(entries))
        for index, (key, value) in enumerate(entries):
            env[f"GIT_CONFIG_KEY_{index}"] = key
            env[f"GIT_CONFIG_VALUE_{index}"] = value
        return env
