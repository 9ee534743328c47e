import random
from dataclasses import dataclass, field


@dataclass
class RetryPolicy:
    """
    Capped exponential backoff with jitter.

    max_retries bounds the total number of attempts for one delivery,
    the first attempt included.
    """

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    jitter_ratio: float = 0.1
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if not 0 <= self.jitter_ratio <= 1:
            raise ValueError("jitter_ratio must be between 0 and 1")

    def should_retry(self, attempts_made: int) -> bool:
        return attempts_made < self.max_retries

    def base_delay(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt number `attempt` (1-based), pre-jitter."""
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        # Cap the exponent too so huge attempt numbers cannot overflow
        exponent = min(attempt - 1, 62)
        return min(self.max_delay_seconds, self.base_delay_seconds * (2**exponent))

    def delay_for(self, attempt: int) -> float:
        delay = self.base_delay(attempt)
        spread = delay * self.jitter_ratio
        jittered = delay + self.rng.uniform(-spread, spread) if spread else delay
        return min(self.max_delay_seconds, max(0.0, jittered))
