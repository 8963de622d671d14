"""
Cross-Chain Deployment Tooling
==============================

Deploys a sender/receiver contract pair on two networks, registers the
sender as trusted on the receiver, records addresses in a persistent
registry and sends messages through the deployed pair.

Modules:
- config: settings, chain descriptors and RPC placeholder resolution
- selector: chain choice by ordinal
- chain_client: web3 signer with deploy/call/read primitives
- orchestrator: deployment sequencing and the deploy-and-register pipeline
- registration: zero-padded sender registration
- registry: persisted deployment records
- messaging: cost quoting and message sending
"""

__version__ = "1.0.0"
__author__ = "Cross-Chain Messaging Team"
