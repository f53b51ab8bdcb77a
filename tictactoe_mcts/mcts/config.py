"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the configuration parameters for the search engine and its
batch scheduler: the exploration constant, the per-move simulation budget and
the pacing of batches.
"""
from dataclasses import dataclass, fields
from typing import ClassVar


@dataclass
class MCTSConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    This class defines all tunable parameters for the MCTS engine,
    with validation and sensible defaults. None of them affect the
    correctness of the search, only its strength and responsiveness.
    """
    # Search parameters
    exploration_constant: float = 1.4
    """UCB1 exploration parameter (sqrt(2) family)"""

    simulations_per_move: int = 1000
    """Requested number of simulations per move decision"""

    max_simulations: int = 500
    """Upper bound the budget is clamped to, for bounded latency"""

    # Scheduling parameters
    batch_size: int = 20
    """Simulations run per scheduling cycle before yielding to the host"""

    speed: int = 50
    """Pacing setting from 0 (slowest) to 100 (fastest)"""

    min_batch_delay_ms: int = 10
    """Floor for the delay between batches"""

    initial_delay_ms: int = 100
    """Delay before the first batch runs"""

    # Constants
    MAX_SPEED: ClassVar[int] = 100
    """Speed value at which the delay reaches its floor"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.exploration_constant < 0:
            raise ValueError("exploration_constant must be non-negative")

        if self.simulations_per_move <= 0:
            raise ValueError("simulations_per_move must be positive")

        if self.max_simulations <= 0:
            raise ValueError("max_simulations must be positive")

        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")

        if not 0 <= self.speed <= self.MAX_SPEED:
            raise ValueError(f"speed must be between 0 and {self.MAX_SPEED}")

        if self.min_batch_delay_ms <= 0:
            raise ValueError("min_batch_delay_ms must be positive")

        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be non-negative")

    @property
    def simulation_budget(self) -> int:
        """Simulations actually run per move (requested value, clamped)."""
        return min(self.simulations_per_move, self.max_simulations)

    @property
    def batch_delay_ms(self) -> int:
        """Pause between batches; higher speed means a shorter pause."""
        return max(self.min_batch_delay_ms, self.MAX_SPEED - self.speed)

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """
        Get the default configuration.

        Returns:
            Default MCTSConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for quick replies.

        Returns:
            Fast MCTSConfig object
        """
        return cls(simulations_per_move=100, speed=100)

    @classmethod
    def strong(cls) -> 'MCTSConfig':
        """
        Get a configuration that spends the whole clamped budget.

        Returns:
            Strong MCTSConfig object
        """
        return cls(simulations_per_move=500, exploration_constant=1.0)

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'MCTSConfig':
        """
        Create a configuration from a dictionary.

        Unknown keys are ignored.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            MCTSConfig object
        """
        valid_params = {k: v for k, v in config_dict.items()
                        if k in {f.name for f in fields(cls)}}
        return cls(**valid_params)

    def to_dict(self) -> dict:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __str__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"MCTSConfig({params})"
