"""Routing: path syntax, layer stack, descriptors and reverse URLs."""

from lynx.routing.params import argument_names, compile_path, join_paths
from lynx.routing.route import (
    BodyDescriptor,
    ControllerDescriptor,
    HttpVerb,
    MiddlewareDescriptor,
    RouteDescriptor,
    VerifierDescriptor,
)
from lynx.routing.router import Layer, Router
from lynx.routing.urls import RouteTable, apply_parameters

__all__ = [
    "BodyDescriptor",
    "ControllerDescriptor",
    "HttpVerb",
    "Layer",
    "MiddlewareDescriptor",
    "RouteDescriptor",
    "RouteTable",
    "Router",
    "VerifierDescriptor",
    "apply_parameters",
    "argument_names",
    "compile_path",
    "join_paths",
]
