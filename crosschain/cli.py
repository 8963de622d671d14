#!/usr/bin/env python3
"""
Command-line entry point for cross-chain deployments and messaging.

    crosschain-deploy deploy --source 1 --target 2
    crosschain-deploy send --source 1 --target 2 --message "Hello"
"""

import sys
import logging
import argparse
from typing import List, Optional

from .artifacts import load_artifact
from .config import Settings, load_chains, load_settings
from .errors import DeploymentError
from .messaging import MessagingClient
from .orchestrator import CrossChainDeployment, DeploymentOrchestrator, default_client_factory
from .registration import RegistrationService
from .registry import DeploymentRegistry
from .selector import ChainSelector

logger = logging.getLogger('crosschain')

DEFAULT_MESSAGE = "Hello from the source chain!"


def configure_logging(settings: Settings) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.insert(0, logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='crosschain-deploy',
        description="Deploy cross-chain sender/receiver contracts and send messages between them.",
    )
    parser.add_argument('--env-file', help="Load environment bindings from this .env file")
    subparsers = parser.add_subparsers(dest='command', required=True)

    def with_chains(sub, source=True, target=True):
        if source:
            sub.add_argument('--source', type=int, help="1-based ordinal of the source chain")
        if target:
            sub.add_argument('--target', type=int, help="1-based ordinal of the target chain")
        return sub

    with_chains(subparsers.add_parser('deploy', help="Deploy sender and receiver, then register the sender"))
    with_chains(subparsers.add_parser('deploy-sender', help="Deploy only the sender contract"), target=False)
    receiver = with_chains(subparsers.add_parser('deploy-receiver', help="Deploy only the receiver contract"),
                           source=False)
    receiver.add_argument('--register-from', type=int, metavar='SOURCE',
                          help="Also register the sender recorded for this chain ordinal")
    with_chains(subparsers.add_parser('register', help="Register a recorded sender on a recorded receiver"))
    send = with_chains(subparsers.add_parser('send', help="Send a message through a deployed sender"))
    send.add_argument('--message', default=DEFAULT_MESSAGE, help="Payload text")
    send.add_argument('--to', dest='target_address', help="Receiver address (defaults to the recorded one)")
    subparsers.add_parser('status', help="Show recorded deployments")
    return parser


def cmd_status(settings: Settings, registry: DeploymentRegistry, args) -> None:
    if not registry.records:
        print(f"No deployments recorded in {settings.registry_path}")
        return
    for chain_id, record in registry.records.items():
        print(f"{chain_id}: {record.network_label or '-'} (deployed {record.last_deployed_at or 'unknown'})")
        print(f"    sender:   {record.sender_address or '-'}")
        print(f"    receiver: {record.receiver_address or '-'}")


def run(args, settings: Settings) -> None:
    registry = DeploymentRegistry(settings.registry_path)
    registry.load()
    if args.command == 'status':
        cmd_status(settings, registry, args)
        return

    selector = ChainSelector(load_chains(settings))
    client_factory = default_client_factory(settings)
    orchestrator = DeploymentOrchestrator(registry, client_factory)

    if args.command == 'send':
        source = selector.prompt('source', args.source)
        target = selector.prompt('target', args.target)
        sender_abi = load_artifact(settings.sender_artifact, require_bytecode=False).abi
        client = MessagingClient(settings, registry, source, client_factory, sender_abi)
        if args.target_address:
            sent = client.send(target.chain_id, args.target_address, args.message)
        else:
            sent = client.send_to_chain(target, args.message)
        print(f"Transaction hash: {sent.tx_hash}")
        print(f"Track it at {sent.explorer_url}")
        return

    if args.command == 'deploy-sender':
        source = selector.prompt('source', args.source)
        address = orchestrator.deploy_sender(source, load_artifact(settings.sender_artifact))
        print(f"Sender on {source.description}: {address}")
        return

    receiver_artifact = load_artifact(settings.receiver_artifact, require_bytecode=args.command != 'register')
    deployment = CrossChainDeployment(orchestrator, RegistrationService(receiver_artifact.abi))

    if args.command == 'deploy-receiver':
        target = selector.prompt('target', args.target)
        source = selector.select(args.register_from, 'source') if args.register_from is not None else None
        address = deployment.deploy_receiver(target, receiver_artifact, source)
        print(f"Receiver on {target.description}: {address}")
    elif args.command == 'register':
        source = selector.prompt('source', args.source)
        target = selector.prompt('target', args.target)
        deployment.register(source, target)
        print(f"Sender from {source.description} registered on {target.description}")
    else:
        source = selector.prompt('source', args.source)
        target = selector.prompt('target', args.target)
        sender_artifact = load_artifact(settings.sender_artifact)
        pair = deployment.run(source, target, sender_artifact, receiver_artifact)
        print(f"Sender on {source.description}: {pair.sender_address}")
        print(f"Receiver on {target.description}: {pair.receiver_address}")
        print(f"Contracts saved to: {settings.registry_path}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(dotenv_path=args.env_file)
        configure_logging(settings)
        run(args, settings)
    except DeploymentError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return e.exit_code
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
