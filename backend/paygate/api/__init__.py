"""HTTP routers. Thin request/response marshaling over the service layer."""
