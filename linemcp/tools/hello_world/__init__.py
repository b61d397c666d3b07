"""Hello world provider: greeting and clock tools."""
