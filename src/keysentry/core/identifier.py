"""Provider identification from credential formats.

SIGNATURES is an ordered, immutable table of full-match rules. Order encodes
precedence: a vendor's specific prefix must come before any looser rule that
would also accept it (``sk-proj-`` before the legacy ``sk-`` format).

Confidence is a static property of each signature:
- high: fixed vendor-documented prefix plus a length rule
- medium: heuristic length or a structurally ambiguous format
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keysentry.core.secure_buffer import SecretBuffer


class Provider(str, Enum):
    """Credential issuers keysentry can recognize."""

    OPENAI = "OpenAI"
    OPENAI_SERVICE = "OpenAI Service Account"
    ANTHROPIC = "Anthropic"
    AWS = "AWS"
    GITHUB_PAT = "GitHub PAT"
    GITHUB_FINE_GRAINED = "GitHub Fine-Grained"
    STRIPE_LIVE = "Stripe Live"
    STRIPE_TEST = "Stripe Test"
    GOOGLE_API = "Google API"
    SLACK_BOT = "Slack Bot"
    SLACK_USER = "Slack User"
    SENDGRID = "SendGrid"
    TWILIO = "Twilio"
    MAILGUN = "Mailgun"
    DISCORD_BOT = "Discord Bot"
    TELEGRAM_BOT = "Telegram Bot"
    GITLAB_PAT = "GitLab PAT"
    GITLAB_PIPELINE = "GitLab Pipeline"
    NPM = "npm Token"
    PYPI = "PyPI Token"
    SHOPIFY_PRIVATE = "Shopify Private"
    SHOPIFY_ACCESS = "Shopify Access"
    DIGITALOCEAN_PAT = "DigitalOcean PAT"
    DIGITALOCEAN_OAUTH = "DigitalOcean OAuth"
    SUPABASE = "Supabase"
    HASHICORP_VAULT = "HashiCorp Vault"
    TERRAFORM_CLOUD = "Terraform Cloud"
    PLANETSCALE = "PlanetScale"
    POSTMAN = "Postman"
    GRAFANA_SERVICE = "Grafana Service"
    LINEAR = "Linear"
    NETLIFY = "Netlify"
    DOPPLER_SERVICE_TOKEN = "Doppler Service Token"
    DOPPLER_SERVICE_ACCOUNT = "Doppler Service Account"
    BUILDKITE = "Buildkite"
    ATLASSIAN = "Atlassian"
    FIGMA = "Figma"
    CIRCLECI = "CircleCI"
    NOTION = "Notion"
    UNKNOWN = "Unknown"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ProviderSignature:
    """A full-match format rule for one provider.

    Attributes:
        provider: Issuer the rule identifies.
        pattern: Compiled regex, applied with ``fullmatch`` to trimmed input.
        confidence: HIGH or MEDIUM; LOW is reserved for unmatched input.
        description: Fixed text shown to users. Never contains secret bytes.
    """

    provider: Provider
    pattern: re.Pattern[str]
    confidence: Confidence
    description: str

    def matches(self, text: str) -> bool:
        return self.pattern.fullmatch(text) is not None


@dataclass(frozen=True)
class Identification:
    provider: Provider
    confidence: Confidence
    description: str

    @property
    def recognized(self) -> bool:
        return self.provider is not Provider.UNKNOWN


UNKNOWN_IDENTIFICATION = Identification(
    provider=Provider.UNKNOWN,
    confidence=Confidence.LOW,
    description="Unknown key format",
)


def _sig(provider: Provider, pattern: str, confidence: Confidence, description: str) -> ProviderSignature:
    return ProviderSignature(provider, re.compile(pattern), confidence, description)


_HIGH = Confidence.HIGH
_MEDIUM = Confidence.MEDIUM

SIGNATURES: tuple[ProviderSignature, ...] = (
    # OpenAI: project and service-account prefixes before the legacy "sk-" form
    _sig(Provider.OPENAI, r"sk-proj-[A-Za-z0-9_-]{80,180}", _HIGH, "OpenAI project API key"),
    _sig(Provider.OPENAI_SERVICE, r"sk-svcacct-[A-Za-z0-9_-]{80,180}", _HIGH, "OpenAI service account key"),
    _sig(Provider.ANTHROPIC, r"sk-ant-api03-[A-Za-z0-9_-]{90,110}", _HIGH, "Anthropic API key"),
    _sig(Provider.OPENAI, r"sk-[A-Za-z0-9]{32,64}", _MEDIUM, "OpenAI API key (legacy format)"),
    # AWS
    _sig(Provider.AWS, r"AKIA[0-9A-Z]{16}", _HIGH, "AWS Access Key ID"),
    # GitHub
    _sig(Provider.GITHUB_PAT, r"ghp_[a-zA-Z0-9]{36}", _HIGH, "GitHub Personal Access Token (classic)"),
    _sig(
        Provider.GITHUB_FINE_GRAINED,
        r"github_pat_[a-zA-Z0-9]{22}_[a-zA-Z0-9]{59}",
        _HIGH,
        "GitHub Fine-Grained Personal Access Token",
    ),
    # Stripe
    _sig(Provider.STRIPE_LIVE, r"sk_live_[0-9a-zA-Z]{24,34}", _HIGH, "Stripe live secret key"),
    _sig(Provider.STRIPE_TEST, r"sk_test_[0-9a-zA-Z]{24,34}", _HIGH, "Stripe test secret key"),
    # Google
    _sig(Provider.GOOGLE_API, r"AIza[0-9A-Za-z_-]{35}", _HIGH, "Google API key"),
    # Slack
    _sig(Provider.SLACK_BOT, r"xoxb-[0-9]+-[0-9]+-[a-zA-Z0-9]+", _HIGH, "Slack Bot token"),
    _sig(Provider.SLACK_USER, r"xoxp-[0-9]+-[0-9]+-[0-9]+-[a-f0-9]+", _HIGH, "Slack User token"),
    # Messaging and email
    _sig(Provider.SENDGRID, r"SG\.[A-Za-z0-9_-]{22}\.[A-Za-z0-9_-]{43}", _HIGH, "SendGrid API key"),
    _sig(Provider.TWILIO, r"SK[0-9a-fA-F]{32}", _HIGH, "Twilio API key"),
    _sig(Provider.MAILGUN, r"key-[0-9a-f]{32}", _HIGH, "Mailgun API key"),
    _sig(Provider.TELEGRAM_BOT, r"[0-9]{8,10}:[A-Za-z0-9_-]{35}", _HIGH, "Telegram Bot token"),
    # GitLab
    _sig(Provider.GITLAB_PAT, r"glpat-[A-Za-z0-9_-]{20,}", _HIGH, "GitLab Personal Access Token"),
    _sig(Provider.GITLAB_PIPELINE, r"glptt-[A-Za-z0-9_-]{20,}", _HIGH, "GitLab Pipeline Trigger Token"),
    # Package registries
    _sig(Provider.NPM, r"npm_[A-Za-z0-9]{36}", _HIGH, "npm access token"),
    _sig(Provider.PYPI, r"pypi-AgEIcHlwaS5vcmc[A-Za-z0-9_-]{50,}", _HIGH, "PyPI API token"),
    # Shopify
    _sig(Provider.SHOPIFY_PRIVATE, r"shppa_[a-fA-F0-9]{32}", _HIGH, "Shopify private app token"),
    _sig(Provider.SHOPIFY_ACCESS, r"shpat_[a-fA-F0-9]{32}", _HIGH, "Shopify access token"),
    # Infrastructure
    _sig(Provider.DIGITALOCEAN_PAT, r"dop_v1_[a-f0-9]{64}", _HIGH, "DigitalOcean personal access token"),
    _sig(Provider.DIGITALOCEAN_OAUTH, r"doo_v1_[a-f0-9]{64}", _HIGH, "DigitalOcean OAuth token"),
    _sig(Provider.SUPABASE, r"sbp_[a-f0-9]{40}", _HIGH, "Supabase access token"),
    _sig(Provider.HASHICORP_VAULT, r"hvs\.[A-Za-z0-9_-]{24,}", _HIGH, "HashiCorp Vault service token"),
    _sig(Provider.TERRAFORM_CLOUD, r"atlasv1-[A-Za-z0-9_-]{60,90}", _HIGH, "Terraform Cloud API token"),
    _sig(Provider.PLANETSCALE, r"pscale_tkn_[A-Za-z0-9_.-]{32,64}", _HIGH, "PlanetScale service token"),
    _sig(Provider.NETLIFY, r"nfp_[A-Za-z0-9]{36,40}", _HIGH, "Netlify personal access token"),
    _sig(Provider.DOPPLER_SERVICE_TOKEN, r"dp\.st\.[A-Za-z0-9_-]{40,44}", _HIGH, "Doppler service token"),
    _sig(Provider.DOPPLER_SERVICE_ACCOUNT, r"dp\.sa\.[A-Za-z0-9_-]{40,44}", _HIGH, "Doppler service account token"),
    _sig(Provider.BUILDKITE, r"bkua_[a-f0-9]{40}", _HIGH, "Buildkite API access token"),
    # SaaS tools
    _sig(Provider.POSTMAN, r"PMAK-[a-f0-9]{24}-[a-f0-9]{34}", _HIGH, "Postman API key"),
    _sig(Provider.GRAFANA_SERVICE, r"glsa_[A-Za-z0-9]{32}_[A-Fa-f0-9]{8}", _HIGH, "Grafana service account token"),
    _sig(Provider.LINEAR, r"lin_api_[A-Za-z0-9]{40}", _HIGH, "Linear API key"),
    _sig(Provider.ATLASSIAN, r"ATATT3xFfGF0[A-Za-z0-9_=-]{50,250}", _HIGH, "Atlassian API token"),
    _sig(Provider.FIGMA, r"figd_[A-Za-z0-9_-]{30,50}", _HIGH, "Figma personal access token"),
    # Heuristic or structurally ambiguous formats
    _sig(
        Provider.DISCORD_BOT,
        r"[A-Za-z0-9_-]{24}\.[A-Za-z0-9_-]{6}\.[A-Za-z0-9_-]{27,}",
        _MEDIUM,
        "Discord Bot token",
    ),
    _sig(Provider.CIRCLECI, r"CIRCLE[A-Za-z0-9_-]{36,64}", _MEDIUM, "CircleCI API token"),
    _sig(Provider.NOTION, r"secret_[A-Za-z0-9]{43}", _MEDIUM, "Notion integration token"),
)


def identify_text(text: str, signatures: tuple[ProviderSignature, ...] = SIGNATURES) -> Identification:
    """Identify already-decoded text. Surrounding whitespace is ignored."""
    trimmed = text.strip()
    for signature in signatures:
        if signature.matches(trimmed):
            return Identification(
                provider=signature.provider,
                confidence=signature.confidence,
                description=signature.description,
            )
    return UNKNOWN_IDENTIFICATION


def identify(secret: SecretBuffer, signatures: tuple[ProviderSignature, ...] = SIGNATURES) -> Identification:
    """Identify the provider of the secret held in ``secret``.

    Never fails: unmatched input resolves to Unknown with low confidence.
    """
    return secret.with_text(lambda text: identify_text(text, signatures))
