"""
Relay service for PCD Eventos.

Accepts document uploads and JSON backups from the client application and
forwards them to the managed media provider, which holds every durable
object. The service itself keeps no state between requests.
"""
