"""Provider exceptions"""


class ProviderError(Exception):
    """Transient failure talking to the price provider (unreachable, rate limited, bad status)"""
