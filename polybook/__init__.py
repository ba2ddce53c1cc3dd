"""Build multi-locale LaTeX books into one artifact per locale."""
