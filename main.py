#!/usr/bin/env python3
"""
Delivery Boy main entry point for container/PaaS deployment.

Starts the API server and the digest scheduler on the port given by $PORT.
"""

import os
import sys


def main():
    """Start Delivery Boy in server mode."""
    port_env = os.environ.get("PORT", "8099")

    # Some platforms pass '$PORT' through unexpanded
    if port_env == "$PORT":
        print("Warning: Got literal '$PORT', using default port 8099")
        port = 8099
    else:
        try:
            port = int(port_env)
        except (ValueError, TypeError):
            print(f"Warning: Invalid PORT value '{port_env}', using default port 8099")
            port = 8099

    print(f"Starting Delivery Boy on port {port}")

    from deliveryboy.run import main as run_main

    # Override sys.argv to pass server mode, port and a public bind address
    sys.argv = ["main.py", "--mode", "server", "--host", "0.0.0.0", "--port", str(port)]

    run_main()


if __name__ == "__main__":
    main()
