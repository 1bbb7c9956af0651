"""
Commands - CLI command implementations.

- deploy:   Deploy MultiSigWallet with its owners and quorum
- interact: Read an owner of a deployed wallet
- invoke:   Generic read (call) and write (send) against any contract
"""
