"""
Field tree model for the schema tree engine.
Defines the in-memory representation of a configuration schema: a document
holding an ordered, depth-bounded tree of fields.
"""

from enum import Enum
from typing import List, Optional, Union, Iterator, Tuple, Sequence
from typing import Literal, Annotated
from pydantic import BaseModel, Field, model_validator
import logging

from .exceptions import FieldShapeError, FieldPathError

logger = logging.getLogger(__name__)

# Fields may live at levels 0, 1 and 2 only
MAX_LEVEL = 2

FieldPath = Tuple[int, ...]


class FieldType(str, Enum):
    """Closed set of field types a schema field can declare."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_structured(self) -> bool:
        return self in (FieldType.ARRAY, FieldType.OBJECT)


class EnumeratedValues(BaseModel):
    """Closed set of scalar values a field (or its array items) may take."""
    kind: Literal["enumerated"] = "enumerated"
    options: List[str] = Field(default_factory=list)


class NestedFields(BaseModel):
    """Object properties, or the properties of object-shaped array items."""
    kind: Literal["nested"] = "nested"
    fields: List["SchemaField"] = Field(default_factory=list)


FieldShape = Annotated[Union[EnumeratedValues, NestedFields], Field(discriminator="kind")]


def _check_unique_names(fields: Sequence["SchemaField"], owner: str) -> None:
    seen = set()
    for field in fields:
        if field.name in seen:
            raise ValueError(f"Duplicate field name '{field.name}' in {owner}")
        seen.add(field.name)


class SchemaField(BaseModel):
    """
    One named slot in a schema document.

    What an array or object contains is held in ``shape``: either an
    enumerated set of options or a list of nested fields, never both.
    The ``options`` and ``children`` properties give the flat view.
    """
    name: str = Field(min_length=1)
    type: FieldType = FieldType.STRING
    required: bool = False
    description: Optional[str] = None
    level: int = Field(default=0, ge=0)
    shape: Optional[FieldShape] = None

    @model_validator(mode="after")
    def _check_tree_invariants(self) -> "SchemaField":
        if self.level > MAX_LEVEL:
            raise ValueError(f"Field '{self.name}' is at level {self.level}, max is {MAX_LEVEL}")

        if isinstance(self.shape, NestedFields):
            if not self.type.is_structured:
                raise ValueError(f"Field '{self.name}' of type {self.type.value} cannot have children")
            if self.level >= MAX_LEVEL:
                raise ValueError(f"Field '{self.name}' at level {self.level} cannot have children")
            for child in self.shape.fields:
                if child.level != self.level + 1:
                    raise ValueError(
                        f"Child '{child.name}' of '{self.name}' must be at level {self.level + 1}, "
                        f"got {child.level}"
                    )
            _check_unique_names(self.shape.fields, f"field '{self.name}'")

        elif isinstance(self.shape, EnumeratedValues) and self.type == FieldType.OBJECT:
            raise ValueError(f"Object field '{self.name}' cannot have options")

        return self

    @property
    def options(self) -> Optional[List[str]]:
        if isinstance(self.shape, EnumeratedValues):
            return self.shape.options
        return None

    @property
    def children(self) -> Optional[List["SchemaField"]]:
        if isinstance(self.shape, NestedFields):
            return self.shape.fields
        return None

    @classmethod
    def create(
        cls,
        name: str,
        type: Union[FieldType, str] = FieldType.STRING,
        required: bool = False,
        description: Optional[str] = None,
        level: int = 0,
        options: Optional[List[str]] = None,
        children: Optional[List["SchemaField"]] = None,
    ) -> "SchemaField":
        """
        Build a field from the flat options/children view.

        Raises:
            FieldShapeError: If both options and children are given
        """
        if options is not None and children is not None:
            raise FieldShapeError(
                f"Field '{name}' cannot have both options and children",
                field_name=name
            )

        shape: Optional[Union[EnumeratedValues, NestedFields]] = None
        if options is not None:
            shape = EnumeratedValues(options=list(options))
        elif children is not None:
            shape = NestedFields(fields=list(children))

        return cls(
            name=name,
            type=FieldType(type),
            required=required,
            description=description,
            level=level,
            shape=shape,
        )


NestedFields.model_rebuild()
SchemaField.model_rebuild()


class SchemaDocument(BaseModel):
    """A named schema with an ordered list of top-level fields."""
    name: str = ""
    description: str = ""
    fields: List[SchemaField] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_top_level(self) -> "SchemaDocument":
        for field in self.fields:
            if field.level != 0:
                raise ValueError(f"Top-level field '{field.name}' must be at level 0, got {field.level}")
        _check_unique_names(self.fields, "document")
        return self

    def get_field(self, path: Sequence[int]) -> SchemaField:
        """
        Resolve a path of sibling indices to a field.

        Raises:
            FieldPathError: If the path is empty or does not address a field
        """
        if not path:
            raise FieldPathError(path, "Path must contain at least one index")

        siblings: Optional[List[SchemaField]] = self.fields
        field = None
        for index in path:
            if siblings is None or not isinstance(index, int) or not 0 <= index < len(siblings):
                raise FieldPathError(path)
            field = siblings[index]
            siblings = field.children
        return field

    def walk(self) -> Iterator[Tuple[FieldPath, SchemaField]]:
        """Yield (path, field) pairs depth-first in display order."""
        def _walk(fields: List[SchemaField], prefix: FieldPath):
            for index, field in enumerate(fields):
                path = prefix + (index,)
                yield path, field
                if field.children:
                    yield from _walk(field.children, path)

        yield from _walk(self.fields, ())

    def field_count(self) -> int:
        return sum(1 for _ in self.walk())
