from paperswift.routers import auth, home, resources

__all__ = [
    'auth',
    'home',
    'resources',
]
