"""Porter-helm3 install action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import functools
import logging
import pathlib
from typing import cast

from porter_helm3 import install
from porter_helm3.kube import DEFAULT_KUBECONFIG, KubernetesClusterClient
from porter_helm3.outputs import OUTPUTS_DIR

from .common import add_common_flags, add_input_flags, read_input

_LOGGER = logging.getLogger(__name__)


class InstallAction:
    """Porter-helm3 install action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "install",
                help="Execute the install functionality of this mixin",
                description="""Install or upgrade a helm release from the
                    single helm3 step in the input, then write the step
                    outputs read from the cluster.""",
            ),
        )
        add_common_flags(args)
        add_input_flags(args)
        args.add_argument(
            "--kubeconfig",
            type=pathlib.Path,
            default=DEFAULT_KUBECONFIG,
            help="Kubeconfig used to read step outputs from the cluster",
        )
        args.add_argument(
            "--outputs-dir",
            type=pathlib.Path,
            default=OUTPUTS_DIR,
            help="Directory where step outputs are written",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        file: pathlib.Path | None,
        kubeconfig: pathlib.Path,
        outputs_dir: pathlib.Path,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        payload = await read_input(file)
        await install.install(
            payload,
            client_factory=functools.partial(
                KubernetesClusterClient.from_kubeconfig, kubeconfig
            ),
            outputs_dir=outputs_dir,
        )
