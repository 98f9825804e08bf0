"""
Schema builder: action signature -> function-calling schema -> typed arguments.

build() turns a descriptor's parameter list into the schema a function-calling
model is constrained to. extract() reads the model's structured call back
into a name -> value mapping, coercing numbers according to the schema.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from llms.base_llm import LLMResponse
from orchestration.action_model import ActionDescriptor, ParameterType


class SchemaType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"


_TYPE_MAP = {
    ParameterType.STRING: SchemaType.STRING,
    ParameterType.INTEGER: SchemaType.INTEGER,
    ParameterType.REAL: SchemaType.NUMBER,
    ParameterType.BOOLEAN: SchemaType.BOOLEAN,
}


@dataclass
class ArgumentSchema:
    """Function declaration for one action; every property is required"""
    name: str
    description: str
    properties: Dict[str, SchemaType] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)


class SchemaBuilder:

    @staticmethod
    def map_type(parameter_type: ParameterType) -> SchemaType:
        # Arrays and user types have no closer function-calling type
        return _TYPE_MAP.get(parameter_type, SchemaType.OBJECT)

    @classmethod
    def build(cls, descriptor: ActionDescriptor) -> ArgumentSchema:
        schema = ArgumentSchema(
            name=descriptor.name,
            description=descriptor.description or descriptor.name,
        )
        for parameter in descriptor.parameters:
            schema.properties[parameter.name] = cls.map_type(parameter.type)
            schema.required.append(parameter.name)
        return schema

    @staticmethod
    def extract(schema: ArgumentSchema, response: LLMResponse) -> Dict[str, Any]:
        """
        Read the declared parameters out of the response's first function call.

        Missing fields are left out of the result; callers get whatever the
        model filled in. A response without a function call yields {}.
        """
        call = response.first_function_call
        if call is None:
            return {}

        values: Dict[str, Any] = {}
        for name, schema_type in schema.properties.items():
            if name not in call.arguments:
                continue
            value = call.arguments[name]

            if isinstance(value, bool):
                values[name] = value
            elif isinstance(value, str):
                values[name] = value
            elif isinstance(value, (int, float)):
                if schema_type == SchemaType.INTEGER:
                    values[name] = int(value)
                else:
                    values[name] = float(value)
            elif isinstance(value, (list, dict)):
                values[name] = value

        return values
