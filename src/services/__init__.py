"""Business logic services used by handlers.

Services are wired together by `services.container.ServiceContainer`; handlers
receive the container instead of importing services directly.
"""
