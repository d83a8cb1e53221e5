import sys

from provider_plugin_gcp import GcpProviderPlugin


def main() -> None:
    sys.exit(GcpProviderPlugin.main())


if __name__ == "__main__":
    main()
