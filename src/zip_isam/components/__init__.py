"""ISAM storage components."""
