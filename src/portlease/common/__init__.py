"""Common types shared by portlease modules."""
