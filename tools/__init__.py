"""Store, weather, language-model and observability tools."""
