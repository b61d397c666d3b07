"""Tool providers bundled with linemcp."""
