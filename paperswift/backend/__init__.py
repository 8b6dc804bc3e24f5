from paperswift.backend.clients import AuthClient, BackendClient, ResourceClient

__all__ = ['AuthClient', 'BackendClient', 'ResourceClient']
