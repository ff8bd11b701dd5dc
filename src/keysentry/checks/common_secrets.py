"""Local weak-secret screening: blocklist, placeholders, keyboard sequences.

The blocklist is stored as SHA-256 digests so the listed values never
appear in source. Nothing leaves the process.
"""

from __future__ import annotations

import hashlib
import re
from typing import TYPE_CHECKING

from keysentry.checks.base import Severity, SignalPlugin, SignalResult

if TYPE_CHECKING:
    from keysentry.config import CheckConfig
    from keysentry.core.secure_buffer import SecretBuffer

# SHA-256 of common passwords, default credentials and placeholder values
COMMON_SECRET_HASHES: frozenset[str] = frozenset(
    {
        "5e884898da28047151d0e56f8dc6292773603d0d6aabbdd62a11ef721d1542d8",  # password
        "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92",  # 123456
        "ef797c8118f02dfb649607dd5d3f8c7623048c9c063d532cc95c5ed7a898a64f",  # 12345678
        "65e84be33532fb784c48129675f9eff3a682b27168c0ea744b2cf58ee02337c5",  # qwerty
        "6ca13d52ca70c883e0f0bb101e425a89e8624de51db2d2392593af6a84118090",  # abc123
        "8bb0cf6eb9b17d0f7d22b456f121257dc1254e1f01665370476383ea776df414",  # 1234567
        "15e2b0d3c33891ebb0f1ef609ec419420c20e320ce94c65fbc8c3312448eb225",  # 123456789
        "03ac674216f3e15c761ee1a5e255f067953623c8b388b4459e13f978d7c846f4",  # 1234
        "5994471abb01112afcc18159f6cc74b4f511b99806da59b3caf5a9c173cacfc5",  # 12345
        "c775e7b757ede630cd0aa1113bd102661ab38829ca52a6422ab782862f268646",  # 1234567890
        "1c8bfe8f801d79745c4631d09fff36c82aa37fc4cce4fc946683d7b336b63032",  # letmein
        "203b70b5ae883932161bbd0bded9357e763e63afce98b16230be33f0b94c2cc5",  # trustno1
        "a9c43be948c5cabd56ef2bacffb77cdaa5eec49dd5eb0cc4129cf3eda5f0e74c",  # dragon
        "a01edad91c00abe7be5b72b5e36bf4ce3c6f26e8bce3340eba365642813ab8b6",  # baseball
        "fc613b4dfd6736a7bd268c8a0e74ed0d1c04a959f59dd74ef2874983fd443fc9",  # master
        "e4ad93ca07acb8d908a3aa41e920ea4f4ef4f26e7f86cf8291c5db289780a5ae",  # iloveyou
        "a941a4c4fd0c01cddef61b8be963bf4c1e2b0811c037ce3f1835fddf6ef6c223",  # sunshine
        "c64975ba3cf3f9cd58459710b0a42369f34b0759c9967fb5a47eea488e8bea79",  # ashley
        "34550715062af006ac4fab288de67ecb44793c3a05c475227241535f6ef7a81b",  # michael
        "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824",  # hello
        "8c6976e5b5410415bde908bd4dee15dfb167a9c873fc4bb8a81f6f2ab448a918",  # admin
        "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",  # test
        "2bb80d537b1da3e38bd30361aa855686bde0eacd7162fef6a25fe97bf527a25b",  # secret
        "057ba03d6c44104863dc7361fe4578965d1887360f90a0895882e58a6248fc86",  # changeme
        "0b14d501a594442a01c6859541bcb3e8164d183d32937b851835442f69d5c94e",  # password1
        "19513fdc9da4fb72a4a05eb66917548d3c90ff94d5419e1f2363eea89dfee1dd",  # Password1
        "37a8eec1ce19687d132fe29051dca629d164e2c4958ba141d5f4133a33f0688f",  # default
    }
)

PLACEHOLDER_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"your[-_]?api[-_]?key[-_]?here",
        r"insert[-_]?api[-_]?key",
        r"replace[-_]?me",
        r"x{3,}",
        r"todo",
        r"fixme",
        r"example",
        r"test[-_]?key",
        r"dummy",
        r"fake[-_]?key",
        r"placeholder",
        r"changeme",
        r"your[-_]?token[-_]?here",
        r"sk[-_]test[-_]x{3,}",
    )
)

SEQUENTIAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(.)\1{7,}"),
    re.compile(r"0123456789.*"),
    re.compile(r"abcdefgh.*", re.IGNORECASE),
    re.compile(r"qwerty.*", re.IGNORECASE),
    re.compile(r"asdfgh.*", re.IGNORECASE),
    re.compile(r"zxcvbn.*", re.IGNORECASE),
)


def _trimmed_sha256(text: str) -> str:
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()


def _classify(text: str) -> str | None:
    trimmed = text.strip()
    if any(p.fullmatch(trimmed) for p in PLACEHOLDER_PATTERNS):
        return "placeholder"
    if any(p.fullmatch(trimmed) for p in SEQUENTIAL_PATTERNS):
        return "sequential"
    return None


class CommonSecretsPlugin(SignalPlugin):
    """Flags well-known passwords, placeholder values and keyboard sequences."""

    id = "common-secrets"
    name = "Common/Weak Secret Detection"
    requires_network = False

    def check(self, secret: SecretBuffer, config: CheckConfig) -> SignalResult:
        if secret.with_text(_trimmed_sha256) in COMMON_SECRET_HASHES:
            return self.result(
                True,
                Severity.CRITICAL,
                "Matches a commonly used password or default credential",
                {"match_type": "blocklist"},
            )

        match_type = secret.with_text(_classify)
        if match_type == "placeholder":
            return self.result(
                True,
                Severity.MEDIUM,
                "Matches a known placeholder or test value pattern",
                {"match_type": "placeholder"},
            )
        if match_type == "sequential":
            return self.result(
                True,
                Severity.HIGH,
                "Contains a sequential or keyboard pattern",
                {"match_type": "sequential"},
            )

        return self.result(False, Severity.LOW, "Not found in common secrets blocklist")
