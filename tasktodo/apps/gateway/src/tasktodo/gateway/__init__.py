"""TaskTodo Gateway -- FastAPI REST API"""
