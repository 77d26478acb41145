"""Example routers used by the CLI."""

from dialogturn.samples.greeting import GreetingRouter

__all__ = ["GreetingRouter"]
