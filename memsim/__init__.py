"""Memory allocation simulator with circular-fit, worst-fit and buddy strategies."""

__version__ = "0.1.0"
__all__ = ["instruction", "linked_list", "buddy_tree", "cli"]