"""Library for synchronizing generated gitops resources into a git repository.

Every operation works on a fresh clone of the gitops repository:

  - Clone the remote and switch to the branch, creating it if needed
  - Delete the component directory so stale files never survive
  - Regenerate the component resources and the kustomization files
  - Stage everything and only commit and push when the staged diff is not empty

Example usage:

```python
from gitops_generator import gitops
from gitops_generator.manifest import GeneratorOptions

generator = gitops.Gen()
generator.clone_generate_and_push(
    "/tmp/work",
    "https://ghp_token@github.com/org/gitops-repo",
    GeneratorOptions(name="frontend", application="shop", target_port=8080),
    branch="main",
)
```

The remote may carry an access token, so every error message raised by this
module has the token replaced with `<TOKEN>`.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
import logging
import posixpath
from urllib.parse import urlparse

from .command import CmdExecutor, CommandType, Executor
from .exceptions import (
    CommandException,
    GenerateException,
    GitOpsException,
    InputException,
    RepositoryExistsError,
)
from .fs import Filesystem, OsFilesystem
from .generate import generate, generate_overlays
from .kustomize import BASE_DIR, COMPONENTS_DIR, generate_parent_kustomize
from .manifest import GeneratorOptions
from .remote import sanitize_error_message

__all__ = [
    "Gen",
    "RepositoryCreator",
    "RepositoryRef",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
DEFAULT_CONTEXT = "/"
DEFAULT_REPO_DESCRIPTION = "Bootstrapped GitOps Repository based on Components"
OVERLAYS_DIR = "overlays"

GIT = CommandType.GIT.value
RM = CommandType.RM.value


def join_path(base: str, *parts: str) -> str:
    """Join paths, treating every part after the first as relative."""
    return posixpath.normpath(
        posixpath.join(base, *(part.lstrip("/") for part in parts))
    )


@dataclass
class RepositoryRef:
    """Organization and name of a repository on a git host."""

    org: str
    name: str

    @classmethod
    def from_url(cls, url: str) -> "RepositoryRef":
        """Parse the organization and repository name from a repository url."""
        parts = urlparse(url).path.split("/")
        if len(parts) < 3 or not parts[1] or not parts[2]:
            raise InputException(f"failed to parse GitOps repo URL {url!r}")
        name = "/".join(parts[2:]).removesuffix(".git")
        return cls(org=parts[1], name=name)


class RepositoryCreator(ABC):
    """Client of a git hosting service that can create repositories."""

    @abstractmethod
    def create_repository(self, repo: RepositoryRef, description: str) -> None:
        """Create a private repository.

        Raises `RepositoryExistsError` when the repository already exists and
        `GitOpsException` for any other failure.
        """


def _command_error(message: str, err: CommandException) -> CommandException:
    """Wrap a failed command, including its sanitized output."""
    output = err.output.decode("utf-8", errors="replace")
    return CommandException(
        sanitize_error_message(f'{message} "{output}": {err}'),
        sanitize_error_message(output).encode("utf-8"),
    )


class Gen:
    """Generates gitops resources and pushes them to a gitops repository."""

    def __init__(
        self, executor: Executor | None = None, fs: Filesystem | None = None
    ) -> None:
        """Initialize Gen with the command executor and filesystem to use."""
        self._executor = executor if executor is not None else CmdExecutor()
        self._fs = fs if fs is not None else OsFilesystem()

    def _execute(self, base_dir: str, command: str, *args: str) -> bytes:
        return self._executor.execute(base_dir, command, *args)

    def clone_repo(
        self, output_path: str, remote: str, component_name: str, branch: str
    ) -> None:
        """Clone the remote into `<output_path>/<component_name>` on the branch."""
        try:
            self._execute(output_path, GIT, "clone", remote, component_name)
        except CommandException as err:
            raise _command_error(
                f'failed to clone git repository in "{output_path}"', err
            ) from err
        _LOGGER.info(
            "Cloned %s into %s", sanitize_error_message(remote), output_path
        )
        self._checkout_branch(join_path(output_path, component_name), branch)

    def _checkout_branch(self, repo_path: str, branch: str) -> None:
        """Switch to the branch, creating it when it does not exist yet."""
        try:
            self._execute(repo_path, GIT, "switch", branch)
            return
        except CommandException as err:
            _LOGGER.debug("Unable to switch to branch %s: %s", branch, err)
        try:
            self._execute(repo_path, GIT, "checkout", "-b", branch)
        except CommandException as err:
            raise _command_error(
                f'failed to checkout branch "{branch}" in repository "{repo_path}"',
                err,
            ) from err
        _LOGGER.info("Created branch %s in %s", branch, repo_path)

    def _remove(self, repo_path: str, path: str) -> None:
        try:
            self._execute(repo_path, RM, "-rf", path)
        except CommandException as err:
            raise _command_error(
                f'failed to delete "{path}" folder in repository in "{repo_path}"',
                err,
            ) from err

    def clone_generate_and_push(
        self,
        output_path: str,
        remote: str,
        options: GeneratorOptions,
        branch: str = DEFAULT_BRANCH,
        context: str = DEFAULT_CONTEXT,
        do_push: bool = True,
    ) -> None:
        """Regenerate the base resources of a component in the gitops repository.

        The repository is cloned to `<output_path>/<component>` and the
        resources are written to `<context>/components/<component>/base`.
        """
        component_name = options.name
        self.clone_repo(output_path, remote, component_name, branch)

        repo_path = join_path(output_path, component_name)
        gitops_folder = join_path(repo_path, context)
        component_path = join_path(
            gitops_folder, COMPONENTS_DIR, component_name, BASE_DIR
        )
        self._remove(repo_path, posixpath.relpath(component_path, repo_path))

        try:
            generate(self._fs, gitops_folder, component_path, options)
        except GitOpsException as err:
            raise GenerateException(
                sanitize_error_message(
                    f'failed to generate the gitops resources in "{component_path}" '
                    f'for component "{component_name}": {err}'
                )
            ) from err

        if do_push:
            self.commit_and_push(
                output_path,
                "",
                remote,
                component_name,
                branch,
                f"Generate GitOps base resources for component {component_name}",
            )

    def commit_and_push(
        self,
        output_path: str,
        repo_path_override: str,
        remote: str,
        component_name: str,
        branch: str,
        commit_message: str,
    ) -> None:
        """Commit and push all changes, doing nothing when nothing changed."""
        repo_path = join_path(output_path, repo_path_override or component_name)
        try:
            self._execute(repo_path, GIT, "add", ".")
        except CommandException as err:
            raise _command_error(
                f'failed to add files for component "{component_name}" to '
                f'repository in "{repo_path}"',
                err,
            ) from err

        try:
            diff = self._execute(repo_path, GIT, "--no-pager", "diff", "--cached")
        except CommandException as err:
            raise _command_error(
                f'failed to check git diff in repository "{repo_path}"', err
            ) from err
        if not diff.strip():
            _LOGGER.info("No changes for component %s, skipping commit", component_name)
            return

        try:
            self._execute(repo_path, GIT, "commit", "-m", commit_message)
        except CommandException as err:
            raise _command_error(
                f'failed to commit files to repository "{repo_path}"', err
            ) from err
        try:
            self._execute(repo_path, GIT, "push", "origin", branch)
        except CommandException as err:
            raise _command_error(
                f'failed to push remote to repository "{remote}"', err
            ) from err
        _LOGGER.info("Pushed %s to branch %s", commit_message, branch)

    def generate_overlays_and_push(
        self,
        output_path: str,
        clone: bool,
        remote: str,
        options: GeneratorOptions,
        application_name: str,
        environment_name: str,
        image_name: str,
        namespace: str,
        branch: str = DEFAULT_BRANCH,
        context: str = DEFAULT_CONTEXT,
        do_push: bool = True,
        component_generated_resources: Mapping[str, list[str]] | None = None,
    ) -> None:
        """Generate the environment overlay of a component and push it.

        The repository is cloned to `<output_path>/<application_name>`, unless
        `clone` is False and a clone from a previous call is reused.
        """
        component_name = options.name
        repo_path = join_path(output_path, application_name)
        if clone:
            self.clone_repo(output_path, remote, application_name, branch)

        gitops_folder = join_path(repo_path, context)
        overlays_path = join_path(
            gitops_folder,
            COMPONENTS_DIR,
            component_name,
            OVERLAYS_DIR,
            environment_name,
        )
        try:
            generate_overlays(
                self._fs,
                gitops_folder,
                overlays_path,
                options,
                image_name,
                namespace,
                component_generated_resources,
            )
        except GitOpsException as err:
            raise GenerateException(
                sanitize_error_message(
                    f'failed to generate the gitops resources in overlays dir '
                    f'"{overlays_path}" for component "{component_name}": {err}'
                )
            ) from err

        if do_push:
            self.commit_and_push(
                output_path,
                application_name,
                remote,
                component_name,
                branch,
                f"Generate {environment_name} environment overlays for component "
                f"{component_name}",
            )

    def remove_and_push(
        self,
        output_path: str,
        remote: str,
        component_name: str,
        branch: str = DEFAULT_BRANCH,
        context: str = DEFAULT_CONTEXT,
        do_push: bool = True,
    ) -> None:
        """Remove a component from the gitops repository and push the change.

        The parent kustomization is rebuilt from the components that remain
        on disk.
        """
        self.clone_repo(output_path, remote, component_name, branch)
        self.remove_component(output_path, component_name, context)
        if do_push:
            self.commit_and_push(
                output_path,
                "",
                remote,
                component_name,
                branch,
                f"Removed component {component_name}",
            )

    def remove_component(
        self, output_path: str, component_name: str, context: str
    ) -> None:
        """Delete the component directory and regenerate the parent kustomization."""
        repo_path = join_path(output_path, component_name)
        gitops_folder = join_path(repo_path, context)
        component_path = join_path(gitops_folder, COMPONENTS_DIR, component_name)
        self._remove(repo_path, posixpath.relpath(component_path, repo_path))
        try:
            generate_parent_kustomize(self._fs, gitops_folder)
        except GitOpsException as err:
            raise GenerateException(
                sanitize_error_message(
                    f'failed to re-generate the gitops resources in "{component_path}" '
                    f'for component "{component_name}": {err}'
                )
            ) from err

    def generate_and_push(
        self,
        output_path: str,
        remote: str,
        options: GeneratorOptions,
        branch: str = DEFAULT_BRANCH,
        do_push: bool = True,
        repo_creator: RepositoryCreator | None = None,
    ) -> None:
        """Generate a new gitops repository for an application and push it.

        Unlike the other operations this does not clone: the resources are
        generated into `<output_path>/<application>` and, when pushing, the
        remote repository is created first and the directory initialized as
        a new git repository.
        """
        component_name = options.name
        repo_path = join_path(output_path, options.application)
        component_path = join_path(repo_path, COMPONENTS_DIR, component_name, BASE_DIR)
        try:
            generate(self._fs, repo_path, component_path, options)
        except GitOpsException as err:
            raise GenerateException(
                sanitize_error_message(
                    f'failed to generate the gitops resources in "{component_path}" '
                    f'for component "{component_name}": {err}'
                )
            ) from err

        if not do_push:
            return
        if options.git_source is None or not options.git_source.url:
            raise InputException(
                f'component "{component_name}" has no gitops repository url'
            )
        if repo_creator is None:
            raise InputException("a repository creator is required to push")
        self._create_repository(options.git_source.url, repo_creator)

        for args, message in (
            (("init", "."), f'failed to initialize git repository in "{repo_path}"'),
            (("add", "."), f'failed to add components to repository in "{repo_path}"'),
            (
                ("commit", "-m", "Generate GitOps resources"),
                f'failed to commit files to repository in "{repo_path}"',
            ),
            (
                ("branch", "-m", branch),
                f'failed to switch to branch "{branch}" in repository in '
                f'"{repo_path}"',
            ),
            (
                ("remote", "add", "origin", remote),
                f'failed to add remote "origin" "{remote}" to repository in '
                f'"{repo_path}"',
            ),
            (
                ("push", "-u", "origin", branch),
                f'failed to push remote to repository "{remote}"',
            ),
        ):
            try:
                self._execute(repo_path, GIT, *args)
            except CommandException as err:
                raise _command_error(message, err) from err
        _LOGGER.info("Pushed new gitops repository for %s", options.application)

    def _create_repository(self, url: str, repo_creator: RepositoryCreator) -> None:
        repo = RepositoryRef.from_url(url)
        try:
            repo_creator.create_repository(repo, DEFAULT_REPO_DESCRIPTION)
        except RepositoryExistsError as err:
            raise RepositoryExistsError(
                "failed to create repository, repo already exists"
            ) from err
        except GitOpsException as err:
            raise GitOpsException(
                sanitize_error_message(
                    f'failed to create repository "{repo.name}" in namespace '
                    f'"{repo.org}": {err}'
                )
            ) from err

    def get_commit_id_from_repo(self, repo_path: str) -> str:
        """Return the commit id of HEAD in the repository."""
        try:
            out = self._execute(repo_path, GIT, "rev-parse", "HEAD")
        except CommandException as err:
            raise _command_error(
                f'failed to retrieve commit id for repository in "{repo_path}"', err
            ) from err
        return out.decode("utf-8").strip()
