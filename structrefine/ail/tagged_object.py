from __future__ import annotations


class TaggedObject:
    """
    A class that takes tags.
    """

    __slots__ = (
        "_hash",
        "idx",
        "tags",
    )

    def __init__(self, idx: int | None, **kwargs):
        self.tags = kwargs
        self.idx = idx
        self._hash = None

    def __getattr__(self, item):
        # tags are reachable as attributes, e.g. expr.reg_name
        try:
            return self.__getattribute__("tags")[item]
        except KeyError:
            raise AttributeError(item) from None

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = self._hash_core()
        return self._hash

    def _hash_core(self):
        raise NotImplementedError
