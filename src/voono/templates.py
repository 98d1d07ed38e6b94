"""Contents of the files the installers write."""

from typing import Any, Dict, Iterable

import yaml

STREAM_MARKER_BEGIN = "# --- voono stream block (autogenerated) ---"
STREAM_MARKER_END = "# --- end voono stream block ---"

# Client certificate the Marzban panel uses to authenticate to this node.
CLIENT_CERT = """\
-----BEGIN CERTIFICATE-----
MIIEnDCCAoQCAQAwDQYJKoZIhvcNAQENBQAwEzERMA8GA1UEAwwIR296YXJnYWgw
IBcNMjQxMDI0MDc1MTM5WhgPMjEyNDA5MzAwNzUxMzlaMBMxETAPBgNVBAMMCEdv
emFyZ2FoMIICIjANBgkqhkiG9w0BAQEFAAOCAg8AMIICCgKCAgEAjSoE1soRlxNz
I71Ex5JTC0R+U+n3rXCl7h0izm2chOUmm/CdRIsEE0gnYjbVI6XoggaXKbJi6enm
yWhmilxmeeOVHI3cBDHxNHD6WrMEe+CELWi7hsNmLvVUrMZtkqZQ+rMBZRxpRSfy
4WemgYdvleBCjDAR8HGM1AvMJ6lHLacPql3q1Pwa4S1P+nISRXn8VJ0Azr1jifzK
73g5Ud0fKcm0Veyj1VtI2bWJIVjOgo9xgyhxo3GhY4cHpP28CgPD98Ek/EcrhPfG
thepmWMVgNjxojUdnMEMN2iJP/eET29RDuhJSTCiPV8l42eF364CaxUnEfPwfXN8
k7rJeoOrRC/Lq9zHtXbxR2HnIkFUlnYnyUwDqy2F/uXWL6i2pCM5rVScoYLMBygm
bq+IAQ+I4E7ET9lH7wrB1y4+wlLsQ6JoIQjW5H4dDLe40loFwIOPRbYh0TzZDZsk
zkD+iJGTz4TdYtpD9IX1MGNFvD1iOTGxGZjT0nChY1ghwccAmZ/JfDeWLuIxiOwL
o/tVtQ0IAl/lbqnbj+1yytM5b9lddNsV3fM2X1mJ5+alA590ZgN0OSkJ5wRLTTm9
MUOZZJO6IhuHVr4RIfFA0dqu3xdzm2KSqPpuLIk6bDFXOOjSa1aqXANTRVi5Wiv6
ls9KRPAAejXh+wqHSDU0Zvh6dqwM4jUCAwEAATANBgkqhkiG9w0BAQ0FAAOCAgEA
Uyfx0YfANHgwbevM4SsCmkrMMOM7VxYrhODr2FWEP9oSTjjNYIXgKma2zdW6fcX7
rSlGJAB4VBeB8t3jG/TvU1I141jNHr121uU1yTihz4Fyt4S9667gIZCkIlvcOS1C
V6RXVXiJSxOn+OIRemlcOcSZyidv3zl31672EVOYaIE7NR9kRuIzvT1jgmmogO3c
kubYimf7s9vCKe/2VG4rb3iyefsyA+Iads0Dv3YphrwbqsfcUllpyeyga+72EMEH
mN6gPDccQXsukJaYWJxu6yh+LHljmENVAnaMHp2bFNKMnkI4LOprv0wPK6Dgo0dX
dGE8CmBkpAja3deirfLpjtNnK3AJOK/YGP2gIhwor/ipel+jVKpLkjo3g56w6wwS
TF9YZlXZEUUgRj6jlC+f+hg1gVaLRX2uj4uO5NswGqPAzuM7cWlei0Qqd/b3hyX4
BDvNE0E7uzxaS5HoHNu223iw0VxjImacr1Tm4o+Nxf/2M1XdeJGifa2/MzJRRsxB
Vmo5yLEZpTK9AXHWBohJZaNLg1jjWmWVkSNdiKvGV4A4+jmiqMXXI9aLkcVmKq4A
2LBVA0Zdg6QPJ6S+pQhpkDSz2MkJoj1peyaP0hPLOnRDB2j+OKfesYRq0cEESjE8
hJAYLVXV8q0aBcjQTGFF4OClzTU+VBY/Joq16uOk6YY=
-----END CERTIFICATE-----
"""


def compose_definition(
    image: str,
    service_port: int,
    api_port: int,
    node_data_dir: str,
    data_dir: str,
    assets_dir: str,
    xray_executable: str,
    cert_file: str,
) -> Dict[str, Any]:
    """docker compose service for the Marzban node, on the host network."""
    return {
        "services": {
            "voono": {
                "image": image,
                "restart": "always",
                "network_mode": "host",
                "environment": {
                    "XRAY_EXECUTABLE_PATH": xray_executable,
                    "SSL_CLIENT_CERT_FILE": cert_file,
                    "SERVICE_PROTOCOL": "rest",
                    "SERVICE_PORT": service_port,
                    "XRAY_API_PORT": api_port,
                },
                "volumes": [
                    f"{node_data_dir}:{node_data_dir}",
                    f"{data_dir}:{data_dir}",
                    f"{assets_dir}:/usr/local/share/xray",
                ],
            }
        }
    }


def render_compose(definition: Dict[str, Any]) -> str:
    return yaml.safe_dump(definition, default_flow_style=False, sort_keys=False)


def stream_block(
    listen: str = "127.0.0.1:8443",
    tls_terminator: str = "127.0.0.1:5000",
    clear_fallback: str = "127.0.0.1:80",
) -> str:
    """nginx ``stream`` block routing on SNI presence.

    Connections without a TLS ClientHello go to the plain HTTP server, TLS
    ones to the local TLS terminator.
    """
    return f"""\
{STREAM_MARKER_BEGIN}
stream {{
    map $ssl_preread_protocol $route_upstream {{
        ""           http_clear_fallback;
        default      tls_terminator;
    }}

    upstream http_clear_fallback {{ server {clear_fallback}; }}
    upstream tls_terminator      {{ server {tls_terminator}; }}

    server {{
        listen {listen} reuseport;
        proxy_pass $route_upstream;
        ssl_preread on;
    }}
}}
{STREAM_MARKER_END}
"""


NGINX_STREAM_BLOCK = stream_block()


def site_config(domain: str, tls_listen: str = "127.0.0.1:5000", web_root: str = "/var/www/html",
                cert_dir: str = "/etc/letsencrypt/live") -> str:
    """Default nginx site: redirect everything to https://<domain>, serve it over TLS 1.3."""
    cert = f"{cert_dir}/{domain}"
    return f"""\
server {{
    listen 80 default_server;
    server_name _;
    return 301 https://{domain}$request_uri;
}}

server {{
    listen {tls_listen} ssl default_server;
    server_name _;

    ssl_certificate     {cert}/fullchain.pem;
    ssl_certificate_key {cert}/privkey.pem;

    return 301 https://{domain}$request_uri;
}}

server {{
    listen {tls_listen} ssl http2;
    server_name {domain};

    ssl_certificate     {cert}/fullchain.pem;
    ssl_certificate_key {cert}/privkey.pem;

    root {web_root};
    index index.html;

    ssl_protocols TLSv1.3;
}}
"""


def resolv_conf(nameservers: Iterable[str]) -> str:
    return "".join(f"nameserver {ns}\n" for ns in nameservers)
