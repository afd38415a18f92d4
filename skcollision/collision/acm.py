"""Allowed collision matrix.

Explicit entries always win. Pairs without an entry take the
construction default only when both names were registered with the
matrix, e.g. the robot's links. Any other name, such as a world object
or an attached body, is checked until an entry allows it.
"""


def _pair_key(name_a, name_b):
    return frozenset((name_a, name_b))


class AllowedCollisionMatrix(object):
    """Symmetric table of pairs that are allowed to collide.

    An entry of `True` means the pair is allowed to be in collision, so
    the checker skips it before any geometric query. Pairs without an
    explicit entry take the construction default when both names were
    registered (`names` or :meth:`add_name`). Pairs involving any other
    name, e.g. world objects or attached bodies, are checked unless an
    explicit entry says otherwise.

    Parameters
    ----------
    names : list[str]
        known names, usually all link names of a robot model.
    allowed : bool
        default value for pairs of known names.

    Examples
    --------
    >>> from skcollision.collision import AllowedCollisionMatrix
    >>> acm = AllowedCollisionMatrix(['base_link', 'torso_lift_link'], True)
    >>> acm.get_entry('base_link', 'torso_lift_link')
    True
    >>> acm.set_entry('torso_lift_link', 'base_link', False)
    >>> acm.get_entry('base_link', 'torso_lift_link')
    False
    >>> acm.get_entry('base_link', 'box')
    False
    """

    def __init__(self, names=(), allowed=False):
        self._names = set(names)
        self._default = bool(allowed)
        self._entries = {}

    @property
    def default_entry(self):
        return self._default

    @property
    def known_names(self):
        return frozenset(self._names)

    def add_name(self, name):
        """Register `name` so that the default applies to its pairs."""
        self._names.add(name)

    def set_entry(self, name_a, name_b, allowed):
        """Set an explicit entry for the unordered pair.

        Parameters
        ----------
        name_a : str
        name_b : str
        allowed : bool
            `True` to skip the pair, `False` to force it to be checked.
        """
        self._entries[_pair_key(name_a, name_b)] = bool(allowed)

    def set_entries(self, name, others=None, allowed=True):
        """Set `name` against each of `others` (all known names if `None`)."""
        if others is None:
            others = self._names
        for other in others:
            if other != name:
                self.set_entry(name, other, allowed)

    def has_entry(self, name_a, name_b):
        return _pair_key(name_a, name_b) in self._entries

    def remove_entry(self, name_a, name_b):
        """Remove an explicit entry. Removing a missing entry is a no-op."""
        self._entries.pop(_pair_key(name_a, name_b), None)

    def get_entry(self, name_a, name_b):
        """Return `True` if the pair is allowed to collide.

        Returns
        -------
        allowed : bool
            the explicit entry if present, the default if both names are
            known, `False` otherwise.
        """
        key = _pair_key(name_a, name_b)
        if key in self._entries:
            return self._entries[key]
        if name_a in self._names and name_b in self._names:
            return self._default
        return False

    def entries(self):
        """Iterate over explicit entries as (name_a, name_b, allowed).

        Names of each pair are sorted, entries are sorted by names.
        """
        items = []
        for key, allowed in self._entries.items():
            names = sorted(key)
            if len(names) == 1:
                names = names * 2
            items.append((names[0], names[1], allowed))
        for item in sorted(items):
            yield item

    def __contains__(self, name):
        if name in self._names:
            return True
        return any(name in key for key in self._entries)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return '<AllowedCollisionMatrix default={} names={} entries={}>'\
            .format(self._default, len(self._names), len(self._entries))
