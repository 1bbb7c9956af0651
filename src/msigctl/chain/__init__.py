"""
Chain - on-chain interaction layer for msigctl.

Async JSON-RPC connection, interface descriptions, contract bindings and
deployment, built on httpx + eth-account + eth-abi.
"""
