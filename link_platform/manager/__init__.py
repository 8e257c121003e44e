"""Code generation, link registry and redirect resolver."""
