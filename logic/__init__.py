"""Pure gear logic: analytics, inventory rendering, prompts and schemas."""
