"""gh-usecases: interactive wizard for creating GitHub repositories and linking them to teams."""

__version__ = "0.3.0"
