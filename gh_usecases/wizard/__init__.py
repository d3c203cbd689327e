"""The interactive wizard: state machine, step components and runner."""

from gh_usecases.wizard.app import WizardApp
from gh_usecases.wizard.state import Step, WizardState, transition

__all__ = ["Step", "WizardApp", "WizardState", "transition"]
