"""survey_rulesets — Rule-driven assembly of recurring tracked surveys.

Public API:
    TaskAssembler      — builds a navigable task from a tracked collection
    TrackedCollection  — configuration of a recurring tracked-data bundle
    assemble_task      — low-level filter / materialise / cross-link pass
    AssembledTask      — task plus the decision and first activity step
    InclusionDecision  — which part of the bundle a run includes
    decide             — computes the inclusion decision from store state

Navigation rules:
    compile_rule       — rule descriptor -> CompiledRule or ConfigIssue
    compile_rules      — compile a rule group, dropping bad descriptors
    CompiledRule       — result identifier + skip target + predicate

Collaborators:
    StepFactory        — ABC: descriptor in, step out
    ConditionalRule    — ABC: run-time skip / after-step hooks
    SurveyStepFactory  — reference step factory
    TrackingNavigator  — reference conditional rule bound by the assembler
    TrackedDataStore   — ABC for cross-session state backends
    InMemoryDataStore  — process-local store

Diagnostics:
    ConfigIssue        — configuration problem returned instead of raising
    ConfigurationWarning — warning category for reported issues
"""

from survey_rulesets.assembler import AssembledTask, TaskAssembler, TrackedCollection, assemble_task
from survey_rulesets.diagnostics import ConfigIssue, ConfigIssueKind, ConfigurationWarning
from survey_rulesets.factory import SurveyStepFactory
from survey_rulesets.interfaces import ConditionalRule, StepFactory
from survey_rulesets.navigation import TrackingNavigator
from survey_rulesets.policy import InclusionDecision, decide
from survey_rulesets.rules import CompiledRule, RuleCompilation, RulePredicate, compile_rule, compile_rules
from survey_rulesets.store import InMemoryDataStore, TrackedDataStore

__all__ = [
    # Assembly
    "AssembledTask",
    "TaskAssembler",
    "TrackedCollection",
    "assemble_task",
    # Policy
    "InclusionDecision",
    "decide",
    # Rules
    "CompiledRule",
    "RuleCompilation",
    "RulePredicate",
    "compile_rule",
    "compile_rules",
    # Collaborators
    "ConditionalRule",
    "InMemoryDataStore",
    "StepFactory",
    "SurveyStepFactory",
    "TrackedDataStore",
    "TrackingNavigator",
    # Diagnostics
    "ConfigIssue",
    "ConfigIssueKind",
    "ConfigurationWarning",
]
