"""
CLI entry point, when used as a module: `python -m kubelink`.
"""
from kubelink import cli

if __name__ == '__main__':
    cli.main()
