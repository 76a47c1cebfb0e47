"""Client-certificate verification (auth-tls-*) → Traefik TLSOption."""

from nginx2traefik.core.constants import (
    AUTH_TLS_SECRET, AUTH_TLS_VERIFY_CLIENT, TRAEFIK_API_VERSION,
)
from nginx2traefik.pacts.helpers import mw_name, object_meta
from nginx2traefik.pacts.ingress import has_tls
from nginx2traefik.pacts.types import ConvertContext, DirectiveConverter

# auth-tls-verify-client value → TLSOption clientAuth.clientAuthType
CLIENT_AUTH_TYPES = {
    "on": "RequireAndVerifyClientCert",
    "true": "RequireAndVerifyClientCert",
    "optional": "VerifyClientCertIfGiven",
    "optional_no_ca": "RequireAnyClientCert",
}


def new_tls_option(ctx: ConvertContext, secret: str, client_auth_type: str) -> dict:
    """Build a TLSOption document requiring client certificates."""
    return {
        "apiVersion": TRAEFIK_API_VERSION,
        "kind": "TLSOption",
        "metadata": object_meta(mw_name(ctx, "mtls"), ctx.namespace),
        "spec": {
            "clientAuth": {
                "secretNames": [secret],
                "clientAuthType": client_auth_type,
            },
        },
    }


class AuthTLSConverter(DirectiveConverter):
    """auth-tls-verify-client / auth-tls-secret → TLSOption ``<ingress>-mtls``.

    The option is not a middleware: it is stored on the result and the
    IngressRoute references it through ``spec.tls.options``.
    """
    name = "auth-tls"
    annotations = (AUTH_TLS_VERIFY_CLIENT, AUTH_TLS_SECRET)

    def convert(self, ctx):
        ann = ctx.annotations
        verify = ann.get(AUTH_TLS_VERIFY_CLIENT, "").strip().lower()
        secret_ref = ann.get(AUTH_TLS_SECRET, "").strip()
        has_secret = AUTH_TLS_SECRET in ann

        if AUTH_TLS_VERIFY_CLIENT not in ann:
            ctx.report_ignored(AUTH_TLS_SECRET,
                               "auth-tls-secret has no effect without auth-tls-verify-client")
            return []
        if verify in ("off", "false"):
            ctx.report_ignored(AUTH_TLS_VERIFY_CLIENT, "client certificate verification disabled")
            if has_secret:
                ctx.report_ignored(AUTH_TLS_SECRET, "client certificate verification disabled")
            return []

        client_auth_type = CLIENT_AUTH_TYPES.get(verify)
        if client_auth_type is None:
            msg = f"auth-tls-verify-client has unknown value {verify!r}"
            ctx.warn(msg)
            ctx.report_skipped(AUTH_TLS_VERIFY_CLIENT, msg)
            if has_secret:
                ctx.report_skipped(AUTH_TLS_SECRET, msg)
            return []
        if not secret_ref:
            msg = "auth-tls-verify-client is enabled but auth-tls-secret is missing"
            ctx.warn(msg)
            ctx.report_skipped(AUTH_TLS_VERIFY_CLIENT, msg)
            if has_secret:
                ctx.report_skipped(AUTH_TLS_SECRET, msg)
            return []

        # "namespace/name" → name; TLSOption secrets live in its own namespace
        secret_ns, _, secret = secret_ref.rpartition("/")
        option = new_tls_option(ctx, secret, client_auth_type)
        ctx.result.tls_options.append(option)
        ctx.result.tls_option_refs[ctx.name] = option["metadata"]["name"]

        if secret_ns and secret_ns != ctx.namespace:
            ctx.warn(f"auth-tls-secret {secret_ref} is in another namespace; "
                     f"copy it to {ctx.namespace or 'the ingress namespace'} for TLSOption "
                     f"{option['metadata']['name']}")
        if not has_tls(ctx.ingress):
            msg = ("auth-tls-verify-client requires TLS termination but the Ingress "
                   "has no spec.tls; the TLSOption is only applied on websecure")
            ctx.warn(msg)
            ctx.report_warning(AUTH_TLS_VERIFY_CLIENT, msg)
        else:
            ctx.report_converted(AUTH_TLS_VERIFY_CLIENT)
        ctx.report_converted(AUTH_TLS_SECRET)
        return []
