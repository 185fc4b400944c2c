"""Domain exceptions raised across the aggregation pipeline."""


class OriginUnresolved(Exception):
    """The query city could not be geocoded; the request cannot proceed."""

    def __init__(self, city: str, state: str):
        self.city = city
        self.state = state
        super().__init__(f"Could not resolve coordinates for {city}, {state}")


class UpstreamUnavailable(Exception):
    """
    An upstream call failed (network, status or payload shape).

    Never escapes a provider: each adapter converts it to its sentinel.
    """

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class ValidationError(Exception):
    """Invalid or missing query parameters."""
