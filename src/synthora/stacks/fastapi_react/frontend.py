"""
React frontend generators.

One page per screen, wired into the navigation and route table of
``src/App.tsx`` in ``spec.screens`` order. Components bound to a data model
fetch through the generated API client; components bound to an ML use case
render an ``MLWidget``.
"""

from __future__ import annotations

import json

from ...core import ir
from ..base import CompositeGenerator, Generator, GeneratorResult
from ..base.utils import camel_case, collection_name, indent, js_string, pascal_case, slug

FRONTEND_DIR = "frontend"

DATA_COMPONENTS = {
    ir.ComponentType.TABLE,
    ir.ComponentType.LIST,
    ir.ComponentType.CARD,
    ir.ComponentType.CHART,
}


def page_name(screen: ir.Screen) -> str:
    return f"{pascal_case(screen.name)}Page"


def page_file(screen: ir.Screen) -> str:
    return f"{FRONTEND_DIR}/src/pages/{pascal_case(screen.name)}.tsx"


class PagesGenerator(Generator):
    """Generate one page component per screen."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        for screen in self.spec.screens:
            path = self.resolve_path(
                lambda: page_file(screen), f"{FRONTEND_DIR}/src/pages/{screen.name}.tsx", screen.id
            )
            self.render(result, path, self._build_page, screen, entity_id=screen.id)
        return result

    def _models_used(self, screen: ir.Screen) -> list[ir.DataModel]:
        used: list[ir.DataModel] = []
        for component in screen.components:
            source = component.data_source
            if source is None or source.is_external:
                continue
            model = self.spec.get_model(source.source)
            if model is not None and model not in used:
                used.append(model)
        return used

    def _component(self, component: ir.Component) -> str:
        if component.ml_integration is not None:
            binding = component.ml_integration
            return (
                f'<MLWidget useCaseId={js_string(binding.use_case_id)} '
                f'features={{{{}}}} displayType={js_string(binding.display_type.value)} />'
            )

        source = component.data_source
        if source is not None and source.is_external:
            label = source.source.replace("*/", "")
            return f'{{/* {component.type.value}: data from {source.type.value} "{label}" */}}'

        model = self.spec.get_model(source.source) if source is not None else None
        if model is not None and component.type == ir.ComponentType.FORM:
            return self._form(model)
        if model is not None and component.type in DATA_COMPONENTS:
            return self._table(model)

        title = component.props.get("title") or component.props.get("text") or component.type.value
        return f'<p className="text-gray-600">{{{js_string(str(title))}}}</p>'

    def _table(self, model: ir.DataModel) -> str:
        var = camel_case(model.name)
        headers = "\n".join(
            f'      <th className="px-4 py-2 text-left">{{{js_string(f.name)}}}</th>' for f in model.fields
        )
        cells = "\n".join(
            f'        <td className="px-4 py-2">{{String(row[{js_string(f.name)}] ?? "")}}</td>'
            for f in model.fields
        )
        lines = [
            '<table className="min-w-full bg-white shadow rounded">',
            '  <thead>',
            '    <tr>',
            headers,
            '    </tr>',
            '  </thead>',
            '  <tbody>',
            f'    {{({var}Query.data ?? []).map((row: any) => (',
            '      <tr key={row.id} className="border-t">',
            cells,
            '      </tr>',
            '    ))}',
            '  </tbody>',
            '</table>',
        ]
        return "\n".join(line for line in lines if line)

    def _form(self, model: ir.DataModel) -> str:
        inputs = "\n".join(
            f'  <input name={js_string(f.name)} placeholder={js_string(f.name)} '
            f'className="block w-full border rounded px-3 py-2"{" required" if f.required else ""} />'
            for f in model.fields
        )
        lines = [
            f'<form onSubmit={{(e) => submit{pascal_case(model.name)}(e)}} className="space-y-3">',
            inputs,
            '  <button type="submit" className="px-4 py-2 bg-blue-600 text-white rounded">',
            f'    Save {{{js_string(model.name)}}}',
            '  </button>',
            '</form>',
        ]
        return "\n".join(line for line in lines if line)

    def _build_page(self, screen: ir.Screen) -> str:
        name = page_name(screen)
        models = self._models_used(screen)
        uses_ml = any(c.ml_integration is not None for c in screen.components)
        has_form = any(c.type == ir.ComponentType.FORM for c in screen.components)

        lines = []
        react_query = ["useQuery"] + (["useMutation", "useQueryClient"] if has_form else [])
        if has_form and models:
            lines.append("import type { FormEvent } from 'react';")
        if models:
            lines.append(f"import {{ {', '.join(react_query)} }} from '@tanstack/react-query';")
            apis = ", ".join(f"{camel_case(m.name)}Api" for m in models)
            lines.append(f"import {{ {apis} }} from '../services/api';")
        if uses_ml:
            lines.append("import { MLWidget } from '../ml/hooks';")
        if lines:
            lines.append('')

        lines.append(f'export default function {name}() {{')
        for model in models:
            var = camel_case(model.name)
            lines.append(
                f"  const {var}Query = useQuery({{ queryKey: ['{collection_name(model.name)}'], "
                f"queryFn: () => {var}Api.getAll().then((r) => r.data) }});"
            )
        if has_form and models:
            lines.append('  const queryClient = useQueryClient();')
            for model in models:
                var = camel_case(model.name)
                lines.extend(
                    [
                        f'  const create{pascal_case(model.name)} = useMutation({{',
                        f'    mutationFn: (data: Record<string, unknown>) => {var}Api.create(data),',
                        f"    onSuccess: () => queryClient.invalidateQueries({{ queryKey: ['{collection_name(model.name)}'] }}),",
                        '  });',
                        f'  const submit{pascal_case(model.name)} = (e: FormEvent<HTMLFormElement>) => {{',
                        '    e.preventDefault();',
                        f'    create{pascal_case(model.name)}.mutate(Object.fromEntries(new FormData(e.currentTarget)));',
                        '  };',
                    ]
                )
        if models or has_form:
            lines.append('')

        lines.extend(
            [
                '  return (',
                '    <div className="px-4 py-6 sm:px-0">',
                f'      <h1 className="text-2xl font-semibold text-gray-900">{{{js_string(screen.name)}}}</h1>',
                '      <div className="mt-6 space-y-6">',
            ]
        )
        if not screen.components:
            lines.append(f'        <p className="text-gray-600">{{{js_string(f"{screen.type.value} view")}}}</p>')
        for component in screen.components:
            lines.append('        <section>')
            lines.append(indent(self._component(component), 10))
            lines.append('        </section>')
        lines.extend(['      </div>', '    </div>', '  );', '}', ''])
        return '\n'.join(lines)


class FrontendAppGenerator(Generator):
    """Generate the app shell, API client, ML hooks and build configuration."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        self.render(result, f"{FRONTEND_DIR}/package.json", self._build_package_json)
        self.render(result, f"{FRONTEND_DIR}/index.html", self._build_index_html)
        self.render(result, f"{FRONTEND_DIR}/vite.config.ts", self._build_vite_config)
        self.render(result, f"{FRONTEND_DIR}/tailwind.config.js", self._build_tailwind_config)
        self.render(result, f"{FRONTEND_DIR}/Dockerfile", self._build_dockerfile)
        self.render(result, f"{FRONTEND_DIR}/src/main.tsx", self._build_main)
        self.render(result, f"{FRONTEND_DIR}/src/index.css", self._build_css)
        self.render(result, f"{FRONTEND_DIR}/src/App.tsx", self._build_app, entity_id=self.spec.id)
        self.render(result, f"{FRONTEND_DIR}/src/services/api.ts", self._build_api)
        self.render(result, f"{FRONTEND_DIR}/src/ml/hooks.tsx", self._build_ml_hooks)
        return result

    def _build_package_json(self) -> str:
        package = {
            "name": f"{slug(self.spec.name)}-frontend",
            "version": self.spec.version,
            "private": True,
            "type": "module",
            "scripts": {"dev": "vite", "build": "tsc && vite build", "preview": "vite preview"},
            "dependencies": {
                "@tanstack/react-query": "^5.17.19",
                "axios": "^1.6.5",
                "react": "^18.2.0",
                "react-dom": "^18.2.0",
                "react-router-dom": "^6.21.3",
            },
            "devDependencies": {
                "@types/react": "^18.2.48",
                "@types/react-dom": "^18.2.18",
                "@vitejs/plugin-react": "^4.2.1",
                "autoprefixer": "^10.4.17",
                "postcss": "^8.4.33",
                "tailwindcss": "^3.4.1",
                "typescript": "^5.3.3",
                "vite": "^5.0.12",
            },
        }
        return json.dumps(package, indent=2) + "\n"

    def _build_index_html(self) -> str:
        title = self.spec.name.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lines = [
            '<!DOCTYPE html>',
            '<html lang="en">',
            '  <head>',
            '    <meta charset="UTF-8" />',
            '    <meta name="viewport" content="width=device-width, initial-scale=1.0" />',
            f'    <title>{title}</title>',
            '  </head>',
            '  <body>',
            '    <div id="root"></div>',
            '    <script type="module" src="/src/main.tsx"></script>',
            '  </body>',
            '</html>',
            '',
        ]
        return '\n'.join(lines)

    def _build_vite_config(self) -> str:
        ports = self.spec.ports
        lines = [
            "import { defineConfig } from 'vite';",
            "import react from '@vitejs/plugin-react';",
            '',
            'export default defineConfig({',
            '  plugins: [react()],',
            '  server: {',
            "    host: '0.0.0.0',",
            f'    port: {ports.frontend_port},',
            '  },',
            '});',
            '',
        ]
        return '\n'.join(lines)

    def _build_tailwind_config(self) -> str:
        lines = [
            "/** @type {import('tailwindcss').Config} */",
            'export default {',
            "  content: ['./index.html', './src/**/*.{js,ts,jsx,tsx}'],",
            '  theme: {',
            '    extend: {},',
            '  },',
            '  plugins: [],',
            '};',
            '',
        ]
        return '\n'.join(lines)

    def _build_dockerfile(self) -> str:
        port = self.spec.ports.frontend_port
        lines = [
            'FROM node:20-alpine',
            '',
            'WORKDIR /app',
            'COPY package.json .',
            'RUN npm install',
            'COPY . .',
            '',
            f'EXPOSE {port}',
            'CMD ["npm", "run", "dev"]',
            '',
        ]
        return '\n'.join(lines)

    def _build_main(self) -> str:
        lines = [
            "import React from 'react';",
            "import ReactDOM from 'react-dom/client';",
            "import App from './App';",
            "import './index.css';",
            '',
            "ReactDOM.createRoot(document.getElementById('root')!).render(",
            '  <React.StrictMode>',
            '    <App />',
            '  </React.StrictMode>,',
            ');',
            '',
        ]
        return '\n'.join(lines)

    def _build_css(self) -> str:
        lines = [
            '@tailwind base;',
            '@tailwind components;',
            '@tailwind utilities;',
            '',
            'body {',
            '  margin: 0;',
            "  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;",
            '}',
            '',
        ]
        return '\n'.join(lines)

    def _build_app(self) -> str:
        screens = self.spec.screens
        has_home = any(s.path == "/" for s in screens)
        lines = [
            "import { BrowserRouter, Link, Route, Routes } from 'react-router-dom';",
            "import { QueryClient, QueryClientProvider } from '@tanstack/react-query';",
        ]
        lines.extend(f"import {page_name(s)} from './pages/{pascal_case(s.name)}';" for s in screens)
        lines.extend(['', 'const queryClient = new QueryClient();', ''])

        lines.extend(
            [
                'function AppHome() {',
                '  return (',
                '    <div className="px-4 py-6 sm:px-0">',
                f'      <h1 className="text-3xl font-bold text-gray-900">{{{js_string(self.spec.name)}}}</h1>',
                f'      <p className="mt-2 text-gray-600">{{{js_string(self.spec.description)}}}</p>',
                '    </div>',
                '  );',
                '}',
                '',
                'export default function App() {',
                '  return (',
                '    <QueryClientProvider client={queryClient}>',
                '      <BrowserRouter>',
                '        <div className="min-h-screen bg-gray-50">',
                '          <nav className="bg-white shadow-sm">',
                '            <div className="max-w-7xl mx-auto px-4 flex h-16 space-x-8">',
                f'              <Link to="/" className="inline-flex items-center text-sm font-medium text-gray-900">{{{js_string(self.spec.name)}}}</Link>',
            ]
        )
        for s in screens:
            lines.append(
                f'              <Link to={js_string(s.path)} className="inline-flex items-center text-sm '
                f'font-medium text-gray-500 hover:text-gray-900">{{{js_string(s.name)}}}</Link>'
            )
        lines.extend(
            [
                '            </div>',
                '          </nav>',
                '          <main className="max-w-7xl mx-auto py-6 sm:px-6 lg:px-8">',
                '            <Routes>',
            ]
        )
        if not has_home:
            lines.append('              <Route path="/" element={<AppHome />} />')
        for s in screens:
            lines.append(f'              <Route path={js_string(s.path)} element={{<{page_name(s)} />}} />')
        lines.extend(
            [
                '            </Routes>',
                '          </main>',
                '        </div>',
                '      </BrowserRouter>',
                '    </QueryClientProvider>',
                '  );',
                '}',
                '',
            ]
        )
        return '\n'.join(lines)

    def _build_api(self) -> str:
        lines = [
            "import axios from 'axios';",
            '',
            'const api = axios.create({',
            f"  baseURL: import.meta.env.VITE_API_URL || 'http://localhost:{self.spec.ports.backend_port}',",
            "  headers: { 'Content-Type': 'application/json' },",
            '});',
            '',
            'export default api;',
        ]
        for model in self.spec.data_models:
            prefix = f"/{collection_name(model.name)}"
            lines.extend(
                [
                    '',
                    f'export const {camel_case(model.name)}Api = {{',
                    f"  getAll: () => api.get('{prefix}/'),",
                    f'  getById: (id: number) => api.get(`{prefix}/${{id}}`),',
                    f"  create: (data: Record<string, unknown>) => api.post('{prefix}/', data),",
                    f'  update: (id: number, data: Record<string, unknown>) => api.patch(`{prefix}/${{id}}`, data),',
                    f'  delete: (id: number) => api.delete(`{prefix}/${{id}}`),',
                    '};',
                ]
            )
        lines.append('')
        return '\n'.join(lines)

    def _build_ml_hooks(self) -> str:
        lines = [
            "import { useQuery } from '@tanstack/react-query';",
            "import api from '../services/api';",
            '',
            'export function useMLPrediction(useCaseId: string, features: Record<string, unknown>, enabled = true) {',
            '  return useQuery({',
            "    queryKey: ['ml-prediction', useCaseId, features],",
            '    queryFn: async () => (await api.post(`/ml/predict/${useCaseId}`, { features })).data,',
            '    enabled: enabled && !!useCaseId,',
            '    staleTime: 5 * 60 * 1000,',
            '  });',
            '}',
            '',
            'type DisplayType = "badge" | "score" | "chart" | "alert" | "recommendation";',
            '',
            'export function MLWidget({',
            '  useCaseId,',
            '  features,',
            "  displayType = 'badge',",
            '}: {',
            '  useCaseId: string;',
            '  features: Record<string, unknown>;',
            '  displayType?: DisplayType;',
            '}) {',
            '  const { data, isLoading, error } = useMLPrediction(useCaseId, features);',
            '  if (isLoading) return <div>Loading prediction...</div>;',
            '  if (error) return <div>Prediction unavailable</div>;',
            '  if (!data) return null;',
            '',
            '  const value = Number(data.prediction);',
            "  if (displayType === 'badge') {",
            "    const color = value > 0.7 ? 'red' : value > 0.4 ? 'yellow' : 'green';",
            '    return (',
            '      <span className={`px-2 py-1 text-xs font-semibold rounded-full bg-${color}-100 text-${color}-800`}>',
            '        {(value * 100).toFixed(0)}%',
            '      </span>',
            '    );',
            '  }',
            "  if (displayType === 'score') {",
            '    return (',
            '      <div className="text-center">',
            '        <div className="text-3xl font-bold">{(value * 100).toFixed(0)}</div>',
            '        <div className="text-sm text-gray-500">Score</div>',
            '      </div>',
            '    );',
            '  }',
            '  return <pre>{JSON.stringify(data, null, 2)}</pre>;',
            '}',
            '',
        ]
        return '\n'.join(lines)


class FrontendGenerator(CompositeGenerator):
    """Pages first, so a broken screen fails before the shell references it."""

    def get_generators(self) -> list[Generator]:
        return [
            PagesGenerator(self.spec, self.generated_at),
            FrontendAppGenerator(self.spec, self.generated_at),
        ]
