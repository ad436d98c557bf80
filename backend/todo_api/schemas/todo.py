from pydantic import BaseModel, Field


class Todo(BaseModel):
    id: str
    text: str


class TodoListResponse(BaseModel):
    todos: list[Todo] = Field(default_factory=list)


class TodoMutationResponse(BaseModel):
    message: str
    todos: list[Todo] = Field(default_factory=list)


class TodoCreatedResponse(TodoMutationResponse):
    todo: Todo
