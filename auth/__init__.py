"""
auth — User authentication module.

Provides:
  • Payload validation rule tables for registration and login
  • Password hashing (bcrypt)
  • JWT access-token creation & verification
  • ``AuthService`` (register / login / profile / user lookups)
  • Login and profile API routes
"""
