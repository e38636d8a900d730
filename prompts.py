# PROMPTS DE GERAÇÃO DOS ARTEFATOS LGPD (CADEIA SEQUENCIAL)
# Cada etapa recebe o JSON dos artefatos anteriores como fonte de verdade.

import json
from typing import List, Mapping, Optional, Tuple

from prompts_diagram import BPMN_RULES, DMN_RULES
from schemas import AnalysisResult, ArtifactKey

# DADOS FIXOS DA INSTITUIÇÃO (entram em todos os prompts)
IFSC_CONTEXT = """
# INFORMAÇÕES INSTITUCIONAIS FIXAS DO IFSC (SEMPRE UTILIZAR ESTES DADOS)
- **Controlador**:
  - **Nome**: Instituto Federal de Educação, Ciência e Tecnologia de Santa Catarina (IFSC)
  - **Natureza Jurídica**: Autarquia Federal
  - **CNPJ**: 11.402.887/0001-60
  - **Endereço**: Rua 14 de Julho, 150, Coqueiros - Florianópolis - SC
  - **CEP**: 88075-010
  - **Telefone**: (48) 3877-9000
  - **Email**: gabinete.reitoria@ifsc.edu.br
- **Encarregado pelo Tratamento de Dados Pessoais (DPO)**:
  - **Nome**: Volnei Velleda Rodrigues
  - **Contato**: encarregado.lgpd@ifsc.edu.br
  - **Previsão Legal**: Art. 41 da Lei nº 13.709/2018 (LGPD)
"""

# Cabeçalho do bloco de texto livre anexado só à primeira etapa
ADDITIONAL_CONTEXT_HEADER = "\n# CONTEXTO ADICIONAL (LINGUAGEM NATURAL)\n"


def snapshot_json(snapshot: Optional[Mapping]) -> str:
    """JSON (chaves em português, indent 2, acentos preservados) do snapshot atual."""
    if snapshot is None:
        return "{}"
    if isinstance(snapshot, AnalysisResult):
        return snapshot.to_json()
    return json.dumps(AnalysisResult(snapshot).to_wire(), ensure_ascii=False, indent=2)


def build_base_context(description: str, snapshot: Optional[Mapping], describe: bool = True) -> str:
    # A etapa visual recebe a descrição crua como parte separada (CONTEXTO ADICIONAL)
    process_line = f'A análise é sobre um processo do IFSC descrito como: "{description or "Não fornecido"}".\n' if describe else ""
    return f"""
# CONTEXTO GERAL
{IFSC_CONTEXT}

{process_line}Os seguintes artefatos já foram gerados e devem ser usados como base para a sua tarefa. Se um artefato estiver vazio, significa que ainda não foi gerado.
```json
{snapshot_json(snapshot)}
```
"""


# 1. PROCESSO VISUAL (BPMN + DMN)
VISUAL_ROLE = """
# ROLE
Você é um Arquiteto Mestre de Automação e Especialista em Padrões da OMG, focado na geração de artefatos BPMN 2.0 e DMN 1.3 perfeitamente formatados e válidos.
"""

VISUAL_TASK = """
# TASK
Analise a entrada do usuário (texto, imagem, XML) e gere um objeto JSON contendo dois artefatos: "bpmn_xml" e "dmn_xml".

---
## PARTE 1: Geração de XML BPMN 2.0
Sua primeira tarefa é converter a descrição do processo em um modelo visual BPMN 2.0.
"""

VISUAL_DMN_TASK = """
---
## PARTE 2: Geração de XML DMN 1.3 (Opcional)
Sua segunda tarefa é identificar se o processo descrito contém um ponto de decisão claro e baseado em regras.
"""

VISUAL_OUTPUT = """
---
# FORMATO DO OUTPUT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido contendo a chave "processo_visual". O valor de "dmn_xml" deve ser uma string XML válida ou `null`.
{
  "processo_visual": {
    "bpmn_xml": "<?xml version=\\"1.0\\" encoding=\\"UTF-8\\"?>...",
    "dmn_xml": "<?xml version=\\"1.0\\" encoding=\\"UTF-8\\"?>... ou null"
  }
}"""


def build_visual_prompt(description: str = "", snapshot: Optional[Mapping] = None) -> str:
    return (
        VISUAL_ROLE
        + build_base_context(description, snapshot, describe=False)
        + VISUAL_TASK
        + BPMN_RULES
        + VISUAL_DMN_TASK
        + DMN_RULES
        + VISUAL_OUTPUT
    )


# 2. ANÁLISE DE DADOS PESSOAIS
ANALYSIS_TASK = """
# TASK
Analise o processo para identificar e classificar todos os dados pessoais e sensíveis manipulados. Determine a finalidade de cada um.

### REGRAS ESTRITAS DE FORMATO
Para esta seção, a estrutura JSON DEVE ser EXATAMENTE a seguinte:
- O objeto principal é `analise_dados_pessoais`.
- Dentro dele, há duas chaves: `dados_identificados` e `dados_sensiveis_identificados`.
- Cada uma dessas chaves contém um array de objetos.
- Cada objeto nesse array DEVE ter TRÊS chaves: `dado`, `finalidade`, `classificacao` ("Pessoal" ou "Sensível").

# OUTPUT_FORMAT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido contendo a chave "analise_dados_pessoais".
{
  "analise_dados_pessoais": {
    "dados_identificados": [
      { "dado": "Nome completo", "finalidade": "Identificação do requerente", "classificacao": "Pessoal" }
    ],
    "dados_sensiveis_identificados": []
  }
}"""


def build_analysis_prompt(description: str, snapshot: Optional[Mapping]) -> str:
    return (
        "\n# ROLE\nVocê é um Especialista em Conformidade LGPD.\n"
        + build_base_context(description, snapshot)
        + ANALYSIS_TASK
    )


# 3. INVENTÁRIO DE DADOS PESSOAIS (IDP)
INVENTORY_TASK = """
# TASK
Com base em toda a informação contextual, gere a entrada completa para o Inventário de Dados Pessoais (IDP) seguindo RIGOROSAMENTE a estrutura JSON abaixo. Use as informações institucionais do IFSC para os campos de Controlador e Encarregado (DPO). Analise o processo para identificar operadores e preencher os demais campos. Para arrays vazios, retorne []. Para campos de texto não aplicáveis, use "Não aplicável".

# OUTPUT_FORMAT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido contendo a chave "inventario_idp".
{
  "inventario_idp": {
    "identificacao_servico": {
      "nome_processo": "string",
      "id_referencia": "string (ex: 'IDP-001', se não houver, gere um)",
      "data_criacao": "string (YYYY-MM-DD, data de hoje)",
      "data_atualizacao": "string (YYYY-MM-DD, data de hoje)"
    },
    "agentes_tratamento": {
      "controlador": {
        "nome": "Instituto Federal de Educação, Ciência e Tecnologia de Santa Catarina (IFSC)",
        "natureza_juridica": "Autarquia Federal",
        "cnpj": "11.402.887/0001-60",
        "endereco": "Rua 14 de Julho, 150, Coqueiros - Florianópolis - SC",
        "cep": "88075-010",
        "telefone": "(48) 3877-9000",
        "email": "gabinete.reitoria@ifsc.edu.br"
      },
      "encarregado_dpo": {
        "nome": "Volnei Velleda Rodrigues",
        "contato": "encarregado.lgpd@ifsc.edu.br",
        "previsao_legal": "Art. 41 da Lei nº 13.709/2018 (LGPD)"
      },
      "operadores": [
        {
          "nome": "string (Nome do Operador, ex: Google, ou 'Servidores do IFSC' para processos internos)",
          "endereco": "string", "cep": "string", "telefone": "string", "email": "string"
        }
      ]
    },
    "fases_ciclo_vida": [
      {
        "operador": "string (Nome do Operador)",
        "coleta": "boolean", "retencao": "boolean", "processamento": "boolean", "compartilhamento": "boolean", "eliminacao": "boolean"
      }
    ],
    "descricao_fluxo_tratamento": {
      "coleta": "string (Como os dados são coletados?)",
      "armazenamento": "string (Onde e como são armazenados?)",
      "uso": "string (Para que são usados?)",
      "compartilhamento": "string (Com quem são compartilhados?)",
      "eliminacao": "string (Como são eliminados?)"
    },
    "escopo_natureza_dados": {
      "abrangencia_geografica": "string (ex: Nacional, Estadual)",
      "fonte_dados": "string (ex: Titular dos dados, Fontes públicas)"
    },
    "finalidade_tratamento": {
      "hipotese_tratamento": "string (ex: Execução de políticas públicas, Cumprimento de obrigação legal)",
      "finalidade": "string (Descrição da finalidade principal do tratamento)",
      "previsao_legal": "string (ex: Lei 11.892/2008)",
      "resultados_pretendidos": "string (O que o titular ganha com isso?)",
      "beneficios_esperados": "string (O que o órgão/sociedade ganha?)"
    },
    "categorias_dados_pessoais": [
      {
        "descricao": "string (ex: Nome e e-mail)",
        "tempo_retencao": "string (ex: Indefinido, 5 anos)",
        "fonte_retencao": "string (ex: Planilha eletrônica, Base de dados)"
      }
    ],
    "categorias_dados_sensiveis": [
      {
        "descricao": "string (ex: Dados sobre saúde)",
        "tempo_retencao": "string",
        "fonte_retencao": "string"
      }
    ],
    "frequencia_totalizacao": {
      "frequencia_tratamento": "string (ex: Diário, Sob demanda, 24x7)",
      "quantidade_dados_pessoais": "number",
      "quantidade_dados_sensiveis": "number"
    },
    "categorias_titulares": {
      "categoria": "string (ex: Pessoas, Servidores, Alunos)",
      "descricao": "string (Detalhes sobre a categoria, ex: 'Interessados em estudar no IFSC')",
      "trata_criancas_adolescentes": "boolean",
      "trata_outro_grupo_vulneravel": "boolean"
    },
    "compartilhamento_dados": [
      {
        "instituicao": "string (Nome da instituição com quem os dados são compartilhados)",
        "dados_compartilhados": "string",
        "finalidade": "string"
      }
    ],
    "medidas_seguranca": [
      {
        "tipo_medida": "string (ex: Controle de Acesso e Privacidade)",
        "descricao_controles": "string (ex: Acesso somente por servidores envolvidos, autenticação em dois fatores)"
      }
    ],
    "transferencia_internacional": [
      {
        "organizacao": "string", "pais": "string", "dados_transferidos": "string", "tipo_garantia": "string"
      }
    ],
    "contratos_ti": [
      {
        "numero_processo": "string", "objeto_contrato": "string", "email_gestor": "string"
      }
    ],
    "manter_atualizacao": {
      "politica_atualizacao": "Este documento é 'vivo' e deve ser atualizado sempre que houver mudanças no processo de tratamento de dados.",
      "periodicidade": "Anual ou sob demanda."
    }
  }
}
"""


def build_inventory_prompt(description: str, snapshot: Optional[Mapping]) -> str:
    return (
        "\n# ROLE\nVocê é um Especialista em Conformidade LGPD. "
        "Sua tarefa é preencher o Inventário de Dados Pessoais (IDP) para o processo descrito.\n"
        + build_base_context(description, snapshot)
        + INVENTORY_TASK
    )


# 4. RELATÓRIO DE IMPACTO (RIPD)
RIPD_TASK = """
# TASK
Sua tarefa é preencher o modelo de Relatório de Impacto à Proteção de Dados (RIPD) abaixo. Utilize as informações dos artefatos já gerados (IDP, Análise de Dados) para preencher CADA campo do modelo de forma precisa e concisa. A estrutura deve seguir o padrão de um documento formal, facilitando a cópia para publicação.

1.  **Avaliação de Risco:** Primeiro, avalie o risco geral do processo. Se 'analise_dados_pessoais.dados_sensiveis_identificados' contiver QUALQUER item, ou se 'inventario_idp.categorias_titulares.trata_criancas_adolescentes' ou 'inventario_idp.categorias_titulares.trata_outro_grupo_vulneravel' for 'true', o risco é ALTO e você DEVE gerar o relatório completo.
2.  **Geração do Relatório:** Se o risco for alto, preencha o modelo Markdown abaixo. Caso contrário, retorne `null`.
3.  **Transposição de Dados:** Preencha os placeholders (ex: {nome do processo}) com os dados exatos do JSON de contexto. Não invente informações. Se uma informação não estiver disponível, indique "Não informado".

# MODELO MARKDOWN (PREENCHA ESTE MODELO)
# RELATÓRIO DE IMPACTO À PROTEÇÃO DE DADOS PESSOAIS (RIPD)
---
## 1. Identificação do Processo de Tratamento de Dados Pessoais

**Nome do Processo:** {inventario_idp.identificacao_servico.nome_processo}
**ID de Referência:** {inventario_idp.identificacao_servico.id_referencia}
**Descrição Breve do Processo:** {description}
**Data de Elaboração/Última Atualização:** {inventario_idp.identificacao_servico.data_atualizacao}

---
## 2. Agentes de Tratamento

**Controlador:**
- **Nome:** Instituto Federal de Educação, Ciência e Tecnologia de Santa Catarina (IFSC)
- **CNPJ:** 11.402.887/0001-60
- **Endereço:** Rua 14 de Julho, 150, Coqueiros - Florianópolis - SC, CEP 88075-010
- **Contato:** (48) 3877-9000, gabinete.reitoria@ifsc.edu.br

**Encarregado (DPO):**
- **Nome:** Volnei Velleda Rodrigues
- **Contato:** encarregado.lgpd@ifsc.edu.br

**Operador(es):**
{Liste os nomes dos operadores de inventario_idp.agentes_tratamento.operadores}

---
## 3. Dados Pessoais Envolvidos

**Categorias de Dados Pessoais:** {Liste as descrições de inventario_idp.categorias_dados_pessoais}
**Categorias de Dados Pessoais Sensíveis:** {Liste as descrições de inventario_idp.categorias_dados_sensiveis, se houver}
**Categorias de Titulares:** {inventario_idp.categorias_titulares.categoria} - {inventario_idp.categorias_titulares.descricao}
**Tratamento de Dados de Crianças e Adolescentes/Grupos Vulneráveis?:**
- **Trata dados de crianças e adolescentes:** {inventario_idp.categorias_titulares.trata_criancas_adolescentes ? 'Sim' : 'Não'}
- **Trata dados de outro grupo vulnerável:** {inventario_idp.categorias_titulares.trata_outro_grupo_vulneravel ? 'Sim' : 'Não'}

---
## 4. Finalidade e Base Legal do Tratamento

**Finalidade(s):** {inventario_idp.finalidade_tratamento.finalidade}
**Base(s) Legal(is):** {inventario_idp.finalidade_tratamento.hipotese_tratamento}
**Previsão Legal Específica:** {inventario_idp.finalidade_tratamento.previsao_legal}

---
## 5. Análise de Riscos e Impactos

**Riscos Identificados:**
- Vazamento, acesso não autorizado ou uso indevido de dados pessoais e, especialmente, dados pessoais sensíveis.
- Reidentificação de titulares em conjuntos de dados, se aplicável.
- Descumprimento de obrigações legais da LGPD.
- Prejuízo à privacidade e aos direitos de grupos vulneráveis, se aplicável.

**Impactos para os Titulares:**
- Danos materiais e morais (e.g., discriminação, fraude, perda de controle sobre informações) em caso de violação de dados.

**Impactos para o Controlador (IFSC):**
- Danos à imagem e reputação institucional.
- Aplicação de sanções administrativas pela ANPD.
- Custos financeiros decorrentes de ações judiciais e remediação de incidentes.

---
## 6. Medidas de Salvaguarda e Mitigação de Riscos

**Medidas Técnicas e Organizacionais:**
{Liste as descrições de inventario_idp.medidas_seguranca}
- **Governança e Conscientização:** Treinamento contínuo em LGPD e segurança da informação para servidores envolvidos.
- **Conformidade com Princípios da LGPD:** O processo é desenhado para garantir a aderência aos princípios da LGPD.
- **Política de Atualização:** O RIPD é um documento vivo e será atualizado anualmente ou sob demanda.

---
## 7. APROVAÇÃO



_________________________________________
**<NOME DO RESPONSÁVEL PELA ELABORAÇÃO>**
*Responsável pela Elaboração do RIPD*



_________________________________________
**Volnei Velleda Rodrigues**
*Encarregado pelo Tratamento de Dados Pessoais (DPO)*

# OUTPUT_FORMAT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido contendo a chave "rascunho_ripd".
{
  "rascunho_ripd": "string em Markdown ou null"
}"""


def build_ripd_prompt(description: str, snapshot: Optional[Mapping]) -> str:
    return (
        "\n# ROLE\nVocê é um Especialista Sênior em Conformidade e Privacidade de Dados.\n"
        + build_base_context(description, snapshot)
        + RIPD_TASK
    )


# 5. SUGESTÕES DE AUTOMAÇÃO
SUGGESTIONS_TASK = """
# TASK
Analise o fluxo do processo e o contexto fornecido para identificar gargalos, tarefas manuais ou oportunidades de melhoria. Forneça 2 a 3 sugestões práticas e acionáveis para otimizar ou automatizar o processo.

# OUTPUT_FORMAT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido contendo a chave "sugestoes_automacao".
{
  "sugestoes_automacao": ["Sugestão 1...", "Sugestão 2..."]
}"""


def build_suggestions_prompt(description: str, snapshot: Optional[Mapping]) -> str:
    return (
        "\n# ROLE\nVocê é um Consultor de Otimização de Processos.\n"
        + build_base_context(description, snapshot)
        + SUGGESTIONS_TASK
    )


# 6. LOG DE TRANSPARÊNCIA
LOG_TASK = """
# TASK
Forneça um log de transparência sobre sua análise completa até o momento. Descreva os passos que você tomou, as inferências que fez e as fontes de informação que utilizou (texto, BPMN, etc.) para gerar os artefatos.

# OUTPUT_FORMAT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido contendo a chave "log_analise".
{
  "log_analise": "Log da análise..."
}"""


def build_log_prompt(description: str, snapshot: Optional[Mapping]) -> str:
    return (
        "\n# ROLE\nVocê é um Auditor de IA Transparente.\n"
        + build_base_context(description, snapshot)
        + LOG_TASK
    )


PROMPT_BUILDERS = {
    ArtifactKey.VISUAL_MODEL: build_visual_prompt,
    ArtifactKey.PERSONAL_DATA_ANALYSIS: build_analysis_prompt,
    ArtifactKey.DATA_INVENTORY: build_inventory_prompt,
    ArtifactKey.IMPACT_REPORT_DRAFT: build_ripd_prompt,
    ArtifactKey.AUTOMATION_SUGGESTIONS: build_suggestions_prompt,
    ArtifactKey.ANALYSIS_LOG: build_log_prompt,
}


def prompt_catalog() -> List[Tuple[str, str]]:
    """
    Todos os prompts renderizados com entradas vazias, na ordem da cadeia.
    Alimenta a tela de transparência ("Configuração de Prompts da IA").
    """
    from prompts_refine import build_refine_prompt

    empty = AnalysisResult()
    return [
        ("1. Análise e Geração de BPMN/DMN", build_visual_prompt("", empty)),
        ("2. Análise de Dados Pessoais", build_analysis_prompt("", empty)),
        ("3. Geração do Inventário (IDP)", build_inventory_prompt("", empty)),
        ("4. Geração do Relatório de Impacto (RIPD)", build_ripd_prompt("", empty)),
        ("5. Geração de Sugestões de Automação", build_suggestions_prompt("", empty)),
        ("6. Geração do Log de Análise da IA", build_log_prompt("", empty)),
        (
            "7. Refinamento de Artefato (Ex: Processo Visual)",
            build_refine_prompt(ArtifactKey.VISUAL_MODEL, empty, "Sua instrução de correção aqui"),
        ),
    ]
