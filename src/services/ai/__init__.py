"""AI provider access for code generation."""
