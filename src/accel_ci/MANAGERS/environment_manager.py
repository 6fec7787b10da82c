"""
Managers for resolving the process environment and .env files.
"""
import os
from typing import Dict, List, Optional
from dotenv import dotenv_values

class EnvironmentManager:
    """
    Merges .env files with the process environment. Variables already set in
    the process environment win over .env files, as in CI where the runner
    exports CI_REGISTRY_IMAGE and friends.
    """
    def __init__(self, base_dir: str = "."):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        """
        self.base_dir = base_dir

    def get_merged_environment(self,
                               env_files: List[str],
                               process_env: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """
        :param env_files: Paths of .env files; later files override earlier ones. Missing files are skipped.
        :param process_env: Environment to merge over the files, os.environ by default.
        :return: The merged environment.
        """
        merged_env: Dict[str, str] = {}
        for env_file in env_files:
            file_path = os.path.join(self.base_dir, env_file)
            if os.path.exists(file_path):
                values = dotenv_values(file_path)
                merged_env.update({k: v for k, v in values.items() if v is not None})

        merged_env.update(os.environ if process_env is None else process_env)
        return merged_env
