"""
Deterministic random stream used by every placement pass.

The stream is a 32-bit linear congruential generator, so a given seed and
call sequence reproduces the same draws on any platform or implementation.
"""

LCG_MULTIPLIER = 196314165
LCG_INCREMENT = 907633515
MASK_32 = 0xFFFFFFFF
MANTISSA_BITS = 23


class RandomStream:
    """
    Seeded draw stream.

    Only two draw kinds exist (uniform float and inclusive integer range),
    and each consumes exactly one step of the generator.
    """

    def __init__(self, seed: int):
        """
        Initialize the stream.

        Args:
            seed: Integer seed; values outside 32 bits are wrapped
        """
        self.initial_seed = int(seed)
        self._state = self.initial_seed & MASK_32
        self.draw_count = 0

    def reset(self):
        """Rewind to the initial seed"""
        self._state = self.initial_seed & MASK_32
        self.draw_count = 0

    def _mutate(self) -> int:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) & MASK_32
        self.draw_count += 1
        return self._state

    def draw_uniform_float(self) -> float:
        """
        Draw a float in [0, 1).

        The top 23 bits of the state become the mantissa, which keeps the
        value exactly representable as a single-precision float.
        """
        state = self._mutate()
        return (state >> (32 - MANTISSA_BITS)) / float(1 << MANTISSA_BITS)

    def draw_int_range(self, lo: int, hi: int) -> int:
        """
        Draw an integer in [lo, hi].

        Args:
            lo: Lower bound (inclusive)
            hi: Upper bound (inclusive)

        Returns:
            int: The drawn value

        Raises:
            ValueError: If the range is empty
        """
        if hi < lo:
            raise ValueError(f"Empty draw range [{lo}, {hi}]")

        span = hi - lo + 1
        return lo + min(int(self.draw_uniform_float() * span), span - 1)

    def __repr__(self) -> str:
        return f"RandomStream(seed={self.initial_seed}, draws={self.draw_count})"
