"""Infrastructure layer - concrete transport, parser, settings and tool plugins."""
