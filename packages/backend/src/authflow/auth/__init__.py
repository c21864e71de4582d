"""Authentication and authorization.

Learn: Users sign up or log in with email/password and receive a JWT
session token (response body + HttpOnly cookie). Protected routes depend
on `protect`, which resolves the token to a User; `restrict_to(...)`
narrows that further to a set of roles.
"""
