"""OAuth domain: request-token handshake, callback listener and credential cache."""
