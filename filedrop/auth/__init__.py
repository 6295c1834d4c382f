"""Authentication: credential checks, session tokens, magic links, sign-in providers."""
