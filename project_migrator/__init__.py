"""Preview configuration differences between two Supabase projects."""

__version__ = "0.3.0"
