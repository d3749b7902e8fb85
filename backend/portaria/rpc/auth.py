# Overview: auth.* procedures; session introspection and logout.

from .registry import MUTATION, QUERY, procedure


@procedure("auth.me", QUERY, access="public")
def me(ctx, data):
    return ctx.user.to_dict() if ctx.user else None


@procedure("auth.logout", MUTATION, access="public")
def logout(ctx, data):
    ctx.clear_session = True
    return {"success": True}
