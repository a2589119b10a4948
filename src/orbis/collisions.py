'''Pairwise collision detection for the orbis simulation core'''

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from .body import Body

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollisionEvent:
    """
    Contact between two bodies found by one detection pass.

    Attributes
    ----------
    body_a, body_b : Body
        The colliding pair, in body list order
    distance : float
        Center-to-center separation [m]
    min_distance : float
        Contact distance (r_a + r_b) * threshold [m]
    normal : np.ndarray
        Unit vector from body_a toward body_b (zero if the centers coincide)
    relative_velocity : np.ndarray
        Velocity of body_b relative to body_a [m/s]
    """
    body_a: Body
    body_b: Body
    distance: float
    min_distance: float
    normal: np.ndarray
    relative_velocity: np.ndarray

    @property
    def approach_speed(self) -> float:
        """Closing speed along the normal, positive when approaching."""
        return float(-(self.relative_velocity @ self.normal))

    def to_dict(self) -> dict:
        """Plain-data snapshot, bodies referenced by name."""
        return {
            'body_a': self.body_a.name,
            'body_b': self.body_b.name,
            'distance': self.distance,
            'min_distance': self.min_distance,
            'normal': self.normal.tolist(),
            'relative_velocity': self.relative_velocity.tolist(),
        }


CollisionHandler = Callable[[Body, Body, CollisionEvent], None]


def make_event(body_a: Body, body_b: Body, threshold: float = 1.0) -> CollisionEvent:
    """Build the contact description for a pair, colliding or not."""
    d = body_b.position - body_a.position
    distance = float(np.linalg.norm(d))
    normal = d / distance if distance > 0 else np.zeros(3)
    return CollisionEvent(
        body_a=body_a,
        body_b=body_b,
        distance=distance,
        min_distance=(body_a.radius + body_b.radius) * threshold,
        normal=normal,
        relative_velocity=body_b.velocity - body_a.velocity,
    )


def detect_collisions(bodies: Sequence[Body], threshold: float = 1.0,
                      handler: Optional[CollisionHandler] = None
                      ) -> List[CollisionEvent]:
    """
    Scan every unordered pair once and report those in contact.

    A pair collides when its separation is below (r_a + r_b) * threshold.
    The handler, if given, is called as handler(body_a, body_b, event) for
    each collision. Handler exceptions are logged and the scan continues.
    No physical response is applied here.

    Returns
    -------
    list of CollisionEvent
        All collisions found, in scan order
    """
    if threshold < 0:
        raise ValueError(f"Collision threshold must be non-negative, got {threshold}")

    events = []
    n_bodies = len(bodies)
    for i in range(n_bodies):
        for j in range(i + 1, n_bodies):
            body_a, body_b = bodies[i], bodies[j]
            event = make_event(body_a, body_b, threshold)
            if event.distance >= event.min_distance:
                continue
            events.append(event)
            if handler is None:
                continue
            try:
                handler(body_a, body_b, event)
            except Exception:
                logger.error("Collision handler failed for '%s' / '%s'",
                             body_a.name, body_b.name, exc_info=True)
    return events
