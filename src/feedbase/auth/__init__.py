"""Authentication and authorization.

Two credential paths resolve to one Principal:
1. Browser users → session cookie holding a signed JWT
2. Integrations → workspace API key in the Authorization header

The Authorizer then walks workspace → board → feedback for that
principal and returns either a granted bundle or a Denied value.
"""
