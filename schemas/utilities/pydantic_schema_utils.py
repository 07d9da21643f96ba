from typing import Any, Dict, Type
from pydantic import BaseModel
import json


class PydanticSchemaUtils:
    """
    Static utilities for turning response models into the structural
    schema hints sent with every Reasoning Service request.

    - json_schema(): the strict JSON schema (wire aliases) for the
      provider's response_json_schema option
    - to_descriptive_json(): a readable outline for the system prompt,
      with nested models expanded inline and enums listed by value
    """

    # ==========================================================
    # Public API
    # ==========================================================

    @staticmethod
    def json_schema(model: Type[BaseModel]) -> Dict[str, Any]:
        return model.model_json_schema(by_alias=True, mode="validation")

    @staticmethod
    def to_descriptive_json(
        model: Type[BaseModel],
        *,
        include_descriptions: bool = True,
    ) -> Dict[str, Any]:
        schema = PydanticSchemaUtils.json_schema(model)
        defs = schema.get("$defs", {})

        return PydanticSchemaUtils._describe(
            schema,
            defs=defs,
            include_descriptions=include_descriptions,
        )

    @staticmethod
    def to_descriptive_pretty_json(
        model: Type[BaseModel],
        *,
        include_descriptions: bool = True,
        indent: int = 2,
    ) -> str:
        outline = PydanticSchemaUtils.to_descriptive_json(
            model,
            include_descriptions=include_descriptions,
        )

        return json.dumps(outline, indent=indent, ensure_ascii=False)

    # ==========================================================
    # Internal helpers
    # ==========================================================

    @staticmethod
    def _resolve(schema: Dict[str, Any], defs: Dict[str, Any]) -> Dict[str, Any]:
        # Some pydantic versions wrap a described $ref as allOf: [{$ref}]
        all_of = schema.get("allOf")
        if isinstance(all_of, list) and len(all_of) == 1:
            schema = all_of[0]

        ref = schema.get("$ref")
        if ref and ref.startswith("#/$defs/"):
            return defs.get(ref.split("/")[-1], {})
        return schema

    @staticmethod
    def _describe(
        schema: Dict[str, Any],
        *,
        defs: Dict[str, Any],
        include_descriptions: bool,
    ) -> Any:
        schema = PydanticSchemaUtils._resolve(schema, defs)
        schema_type = schema.get("type")

        # ---------- Objects ----------
        if schema_type == "object":
            required = set(schema.get("required", []))
            result: Dict[str, Any] = {}

            for field_name, field_schema in schema.get("properties", {}).items():
                shape = PydanticSchemaUtils._describe(
                    field_schema,
                    defs=defs,
                    include_descriptions=include_descriptions,
                )

                if include_descriptions and "description" in field_schema:
                    result[field_name] = {
                        "_description": field_schema["description"],
                        "_type": shape,
                        "_required": field_name in required,
                    }
                else:
                    result[field_name] = shape

            return result

        # ---------- Arrays ----------
        if schema_type == "array":
            return [
                PydanticSchemaUtils._describe(
                    schema.get("items", {}),
                    defs=defs,
                    include_descriptions=include_descriptions,
                )
            ]

        return PydanticSchemaUtils._type_repr(schema, defs)

    @staticmethod
    def _type_repr(schema: Dict[str, Any], defs: Dict[str, Any]) -> str:
        schema = PydanticSchemaUtils._resolve(schema, defs)

        # ---------- Enums ----------
        if "enum" in schema:
            return " | ".join(str(v) for v in schema["enum"])

        # ---------- Optional / Union ----------
        if "anyOf" in schema:
            return " | ".join(
                PydanticSchemaUtils._type_repr(s, defs) for s in schema["anyOf"]
            )

        t = schema.get("type")
        if t in ("string", "integer", "number", "boolean", "object"):
            return t
        if t == "null":
            return "null"

        return "unknown"
