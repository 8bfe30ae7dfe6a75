"""Quiz generation from study notes and spaced-repetition review scheduling."""

__version__ = '1.0.0'
