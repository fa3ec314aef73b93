"""LearnLoop backend."""
